from .field_sanitizer import find_missing, infer_respondent, sanitize_responses
from .signature_decoder import DecodedSignature, decode_signature_data_url
from .submission_service import SubmissionService

__all__ = [
    'find_missing', 'infer_respondent', 'sanitize_responses',
    'DecodedSignature', 'decode_signature_data_url', 'SubmissionService',
]
