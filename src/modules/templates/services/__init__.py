from .checksum import canonicalize, hash_payload_sha256
from .template_service import TemplateService, parse_template_payload

__all__ = ['canonicalize', 'hash_payload_sha256', 'TemplateService', 'parse_template_payload']
