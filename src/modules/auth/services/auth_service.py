from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from config import settings
from logging_config import audit_logger
from modules.auth.models import Membership, Organization, User
from modules.auth.schemas import IdentityClaims, StaffContext
from modules.auth.services.permission import is_staff
from modules.common.errors import ForbiddenError, UnauthorizedError


class AuthService:
    """Verifies identity-provider tokens and resolves the caller's org membership."""

    @staticmethod
    def create_identity_token(user_ref: str, org_ref: Optional[str], expires_delta: Optional[timedelta] = None) -> str:
        """Issues a token shaped like the identity provider's (dev tooling and tests)."""
        to_encode = {"sub": user_ref}
        if org_ref is not None:
            to_encode["org_id"] = org_ref
        expire = datetime.utcnow() + (expires_delta or timedelta(minutes=60))
        to_encode["exp"] = expire
        return jwt.encode(to_encode, settings.IDENTITY_JWT_SECRET, algorithm=settings.IDENTITY_JWT_ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Optional[IdentityClaims]:
        try:
            payload = jwt.decode(
                token,
                settings.IDENTITY_JWT_SECRET,
                algorithms=[settings.IDENTITY_JWT_ALGORITHM],
            )
        except JWTError:
            return None
        user_ref = payload.get("sub")
        if not user_ref:
            return None
        return IdentityClaims(user_ref=str(user_ref), org_ref=payload.get("org_id"))

    @staticmethod
    def require_staff(db: Session, token: str) -> StaffContext:
        """
        Returns the staff context for the token's user inside the token's org.

        UnauthorizedError when the token is missing or invalid, ForbiddenError
        when there is no org context, no membership, or the role is not staff.
        """
        claims = AuthService.verify_token(token)
        if claims is None:
            raise UnauthorizedError("Invalid or expired token.")

        if not claims.org_ref:
            audit_logger.log_access_denied("no organization context", claims.user_ref)
            raise ForbiddenError("No organization context.")

        user = db.query(User).filter(User.external_id == claims.user_ref).first()
        if not user or not user.is_active:
            audit_logger.log_access_denied("unknown user", claims.user_ref, claims.org_ref)
            raise ForbiddenError("User not found.")

        org = db.query(Organization).filter(Organization.external_id == claims.org_ref).first()
        if not org:
            audit_logger.log_access_denied("unknown organization", claims.user_ref, claims.org_ref)
            raise ForbiddenError("Organization not found.")

        membership = (
            db.query(Membership)
            .filter(Membership.user_id == user.id, Membership.org_id == org.id)
            .first()
        )
        if not membership:
            audit_logger.log_access_denied("no membership", claims.user_ref, claims.org_ref)
            raise ForbiddenError("No membership found for organization.")

        if not is_staff(membership.role):
            audit_logger.log_access_denied("role not staff", claims.user_ref, claims.org_ref)
            raise ForbiddenError("STAFF or ADMIN role required.")

        return StaffContext(user_id=user.id, org_id=org.id, role=membership.role)
