"""
Demo data: an organization, an admin member and a published consent template.

    python seed.py --org studio-demo --user user-demo
"""

import argparse

from sqlalchemy.orm import Session

from database import SessionLocal
from logging_config import get_logger, setup_logging
from modules.auth.models import Membership, MemberRole, Organization, User
from modules.auth.services.auth_service import AuthService
from modules.templates.models import Template
from modules.templates.services.template_service import TemplateService

logger = get_logger(__name__)

SAMPLE_TEMPLATE = {
    "name": "Informed consent",
    "description": "Consent form for treatments and personal data processing.",
    "locale": "it-IT",
    "fields": [
        {"id": "fullName", "type": "text", "label": "Full name", "required": True},
        {"id": "email", "type": "email", "label": "Email", "required": True},
        {"id": "phone", "type": "phone", "label": "Phone"},
        {"id": "birthDate", "type": "date", "label": "Date of birth"},
        {
            "id": "disclaimer",
            "type": "content",
            "label": "Information",
            "content": "Your data is processed only to provide the requested service.",
        },
        {
            "id": "treatment",
            "type": "radio",
            "label": "Treatment",
            "required": True,
            "options": [
                {"id": "tattoo", "label": "Tattoo"},
                {"id": "piercing", "label": "Piercing"},
            ],
        },
        {"id": "privacy", "type": "checkbox", "label": "I accept the privacy policy", "required": True},
        {
            "id": "signature",
            "type": "signature",
            "label": "Signature",
            "required": True,
            "acknowledgementText": "I confirm the information above is accurate.",
        },
    ],
}


def seed_demo_data(session: Session, org_ref: str = "studio-demo", user_ref: str = "user-demo") -> Organization:
    """Idempotent: returns the existing organization when it is already seeded."""
    org = session.query(Organization).filter(Organization.external_id == org_ref).first()
    if org:
        logger.info(f"Demo organization {org_ref} already exists")
        return org

    org = Organization(external_id=org_ref, name="Demo Studio")
    user = session.query(User).filter(User.external_id == user_ref).first()
    if not user:
        user = User(external_id=user_ref, name="Demo Admin", email="admin@example.com", is_active=True)
    session.add_all([org, user])
    session.flush()
    session.add(Membership(user_id=user.id, org_id=org.id, role=MemberRole.ADMIN))
    session.commit()

    result = TemplateService.save_draft(session, org.id, SAMPLE_TEMPLATE)
    TemplateService.publish(session, org.id, result["id"], SAMPLE_TEMPLATE)
    logger.info(f"Demo data created for organization {org_ref}")
    return org


def main():
    parser = argparse.ArgumentParser(description="Seed demo organization, admin and template")
    parser.add_argument("--org", default="studio-demo", help="External organization id")
    parser.add_argument("--user", default="user-demo", help="External user id of the admin")
    args = parser.parse_args()

    setup_logging()
    from create_tables import create_tables
    create_tables()

    with SessionLocal() as session:
        org = seed_demo_data(session, args.org, args.user)
        templates = session.query(Template).filter(Template.org_id == org.id).count()

    print(f"Organization {args.org}: {templates} template(s)")
    print(f"Bearer token: {AuthService.create_identity_token(args.user, args.org)}")


if __name__ == "__main__":
    main()
