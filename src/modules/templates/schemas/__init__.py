from .field_schemas import (
    CheckboxField, ContentField, DateField, EmailField, FieldDefinition,
    PhoneField, RadioField, SignatureField, TemplatePayload, TextareaField,
    TextField,
)

__all__ = [
    'CheckboxField', 'ContentField', 'DateField', 'EmailField', 'FieldDefinition',
    'PhoneField', 'RadioField', 'SignatureField', 'TemplatePayload',
    'TextareaField', 'TextField',
]
