from .auth_schemas import IdentityClaims, StaffContext

__all__ = ['IdentityClaims', 'StaffContext']
