from pydantic import BaseModel
from modules.auth.models.membership import MemberRole

class IdentityClaims(BaseModel):
    user_ref: str
    org_ref: str | None = None

class StaffContext(BaseModel):
    user_id: int
    org_id: int
    role: MemberRole

    model_config = {"frozen": True}
