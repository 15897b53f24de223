from modules.auth.models.membership import MemberRole

ROLE_PERMISSIONS = {
    MemberRole.ADMIN: ["templates", "intakes", "submissions"],
    MemberRole.STAFF: ["templates", "intakes", "submissions"],
    MemberRole.MEMBER: [],
}

STAFF_ROLES = (MemberRole.ADMIN, MemberRole.STAFF)

def is_staff(role: MemberRole) -> bool:
    return role in STAFF_ROLES

def can_perform_action(role: MemberRole, action: str) -> bool:
    return action in ROLE_PERMISSIONS.get(role, [])
