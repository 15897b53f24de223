from .template import Template, TemplateStatus
from .template_version import ImmutableVersionError, TemplateDraft, TemplateVersion

__all__ = ['Template', 'TemplateStatus', 'TemplateVersion', 'TemplateDraft', 'ImmutableVersionError']
