from .pdf_artifact import PdfArtifact, PdfStatus

__all__ = ['PdfArtifact', 'PdfStatus']
