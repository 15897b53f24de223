from .organization import Organization
from .user import User
from .membership import Membership, MemberRole

__all__ = ['Organization', 'User', 'Membership', 'MemberRole']
