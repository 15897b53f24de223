"""
Two-page audit PDF of a submission.

Page 1 lists every answer against its frozen label, page 2 is the audit trail
in a fixed order. The signature image is never embedded, only referenced.
"""

import io
from datetime import date, datetime
from typing import Any, Optional
from xml.sax.saxutils import escape

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import HRFlowable, PageBreak, Paragraph, SimpleDocTemplate, Spacer

from modules.submissions.models import Submission
from modules.submissions.services.field_sanitizer import answer_fields

EMPTY = "—"
DATE_FORMAT = "%d/%m/%Y"
DATETIME_FORMAT = "%d/%m/%Y %H:%M UTC"

GRAY_500 = HexColor('#6b7280')
GRAY_200 = HexColor('#e5e7eb')
TEXT = HexColor('#111827')


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime(DATETIME_FORMAT) if value else EMPTY


def format_date_value(raw: Any) -> str:
    if isinstance(raw, (date, datetime)):
        return raw.strftime(DATE_FORMAT)
    if isinstance(raw, str):
        try:
            return datetime.fromisoformat(raw).strftime(DATE_FORMAT)
        except ValueError:
            return raw
    return str(raw)


def _truthy(raw: Any) -> bool:
    if isinstance(raw, str):
        return bool(raw.strip()) and raw != "false"
    return bool(raw)


def format_field_value(field: dict, responses: dict) -> str:
    field_type = field.get("type")
    raw = responses.get(field.get("id"))

    if field_type == "signature":
        return "Signature captured" if _truthy(raw) else "Signature missing"
    if raw is None or raw == "":
        return EMPTY
    if field_type == "checkbox":
        return "Yes" if _truthy(raw) else "No"
    if field_type == "radio":
        labels = {option.get("id"): option.get("label") for option in field.get("options", [])}
        return labels.get(raw, str(raw))
    if field_type == "date":
        return format_date_value(raw)
    return str(raw)


class SubmissionPdfRenderer:
    """Renders a loaded submission graph to PDF bytes."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(ParagraphStyle(
            name='OrgName',
            parent=self.styles['Normal'],
            fontSize=9,
            textColor=GRAY_500,
            spaceAfter=4,
        ))
        self.styles.add(ParagraphStyle(
            name='TemplateName',
            parent=self.styles['Title'],
            fontSize=20,
            textColor=TEXT,
            alignment=0,
            spaceAfter=4,
        ))
        self.styles.add(ParagraphStyle(
            name='Meta',
            parent=self.styles['Normal'],
            fontSize=9,
            textColor=GRAY_500,
            spaceAfter=16,
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=14,
            textColor=TEXT,
            spaceAfter=8,
        ))
        self.styles.add(ParagraphStyle(
            name='FieldLabel',
            parent=self.styles['Normal'],
            fontName='Helvetica-Bold',
            fontSize=10,
            spaceBefore=6,
        ))
        self.styles.add(ParagraphStyle(
            name='FieldValue',
            parent=self.styles['Normal'],
            fontSize=10,
            spaceAfter=6,
        ))
        self.styles.add(ParagraphStyle(
            name='AuditLabel',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=GRAY_500,
        ))

    def _text(self, value: Any, style: str) -> Paragraph:
        text = EMPTY if value is None or str(value).strip() == "" else str(value)
        return Paragraph(escape(text), self.styles[style])

    def _audit_row(self, story: list, label: str, value: Any):
        story.append(self._text(label, 'AuditLabel'))
        story.append(self._text(value, 'FieldValue'))

    def _divider(self, story: list):
        story.append(HRFlowable(width="100%", thickness=0.5, color=GRAY_200, spaceBefore=6, spaceAfter=6))

    def render(self, submission: Submission) -> bytes:
        version = submission.template_version
        template = version.template
        org = submission.organization
        signature = submission.signature
        responses = submission.response_data if isinstance(submission.response_data, dict) else {}
        fields = answer_fields(version.schema_json.get("fields", []))

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            topMargin=20*mm,
            bottomMargin=20*mm,
            leftMargin=20*mm,
            rightMargin=20*mm,
            title=f"{template.name} - {submission.id}",
        )

        story = []
        story.append(self._text(org.name, 'OrgName'))
        story.append(self._text(template.name, 'TemplateName'))
        story.append(self._text(
            f"Version {version.version} | Submitted {format_datetime(submission.submitted_at or submission.created_at)}",
            'Meta',
        ))

        story.append(self._text("Responses", 'SectionHeader'))
        if not fields:
            story.append(self._text("No fields to display.", 'FieldValue'))
        for field in fields:
            self._divider(story)
            story.append(self._text(field.get("label"), 'FieldLabel'))
            story.append(self._text(format_field_value(field, responses), 'FieldValue'))

        story.append(PageBreak())

        story.append(self._text("Audit trail", 'SectionHeader'))
        self._audit_row(story, "Submission ID", submission.id)
        self._audit_row(story, "Organization", org.name)
        self._audit_row(story, "Template", f"{template.name} (v{version.version})")
        self._audit_row(story, "Created at", format_datetime(submission.created_at))
        self._audit_row(story, "Submitted at", format_datetime(submission.submitted_at))
        self._divider(story)
        self._audit_row(story, "Respondent name", submission.respondent_name)
        self._audit_row(story, "Respondent email", submission.respondent_email)
        self._audit_row(story, "Respondent phone", submission.respondent_phone)
        self._divider(story)
        self._audit_row(story, "Client IP", signature.ip_address if signature else None)
        self._audit_row(story, "User agent", signature.user_agent if signature else None)
        self._audit_row(story, "Signed by", signature.signer_name if signature else None)
        self._audit_row(story, "Signature recorded at", format_datetime(signature.signed_at_utc) if signature else None)
        self._audit_row(story, "Signature reference", signature.blob_url if signature else None)

        doc.build(story)
        return buffer.getvalue()
