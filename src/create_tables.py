# create_tables.py
from database import engine, Base
from logging_config import get_logger
# Import every model so it registers with Base
from modules.auth.models import Organization, User, Membership
from modules.templates.models import Template, TemplateVersion, TemplateDraft
from modules.intakes.models import IntakeSession
from modules.submissions.models import Submission, Signature
from modules.pdf.models import PdfArtifact

logger = get_logger(__name__)

def create_tables(bind=None):
    """Creates every table that does not exist yet"""
    logger.info(f"Tables: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=bind or engine)

if __name__ == "__main__":
    create_tables()
