from .pdf_renderer import SubmissionPdfRenderer, format_field_value
from .pdf_workflow import PdfGenerationWorkflow, generate_pdf_workflow, get_pdf_workflow, upsert_artifact
from .pdf_artifact_service import PdfArtifactService

__all__ = [
    'SubmissionPdfRenderer', 'format_field_value', 'PdfGenerationWorkflow',
    'generate_pdf_workflow', 'get_pdf_workflow', 'upsert_artifact', 'PdfArtifactService',
]
