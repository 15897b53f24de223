from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from database import get_db
from modules.auth.schemas import StaffContext
from modules.auth.services.auth_service import AuthService
from modules.auth.services.permission import can_perform_action
from modules.common.errors import ForbiddenError, UnauthorizedError

security = HTTPBearer(auto_error=False)

def get_current_staff(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> StaffContext:
    if credentials is None:
        raise UnauthorizedError("Authentication required.")
    return AuthService.require_staff(db, credentials.credentials)

def require_permission(action: str):
    def dependency(current_staff: StaffContext = Depends(get_current_staff)) -> StaffContext:
        if not can_perform_action(current_staff.role, action):
            raise ForbiddenError(f"Role '{current_staff.role.value}' cannot perform '{action}'.")
        return current_staff
    return dependency
