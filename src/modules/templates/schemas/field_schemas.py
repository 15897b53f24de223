"""
Template field schema.

A template is a list of fields discriminated by ``type``. The JSON stored in
template versions is the camelCase dump of ``TemplatePayload``.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

ID_PATTERN = r"^[a-zA-Z0-9_-]+$"
HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"

DEFAULT_LOCALE = "it-IT"


class SchemaModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldCommon(SchemaModel):
    id: str = Field(min_length=1, pattern=ID_PATTERN)
    label: str = Field(min_length=1)
    helper_text: Optional[str] = Field(default=None, max_length=500)


class InputField(FieldCommon):
    required: bool = False
    placeholder: Optional[str] = Field(default=None, max_length=255)


class TextField(InputField):
    type: Literal["text"]
    max_length: Optional[int] = Field(default=None, gt=0)


class TextareaField(InputField):
    type: Literal["textarea"]
    max_length: Optional[int] = Field(default=None, gt=0)


class EmailField(InputField):
    type: Literal["email"]


class PhoneField(InputField):
    type: Literal["phone"]
    pattern: Optional[str] = Field(default=None, pattern=r"^\+?[0-9()\s-]+$")


class DateField(InputField):
    type: Literal["date"]
    min: Optional[str] = None
    max: Optional[str] = None


class CheckboxField(InputField):
    type: Literal["checkbox"]
    default_value: Optional[bool] = None


class RadioOption(SchemaModel):
    id: str = Field(min_length=1, pattern=ID_PATTERN)
    label: str = Field(min_length=1)


class RadioField(InputField):
    type: Literal["radio"]
    options: list[RadioOption] = Field(min_length=2)


class ContentField(FieldCommon):
    """Static text block; never collects an answer."""

    type: Literal["content"]
    content: str = Field(min_length=1, max_length=3000)
    align: Optional[Literal["start", "center", "end"]] = None

    @property
    def required(self) -> bool:
        return False


class SignatureField(InputField):
    type: Literal["signature"]
    acknowledgement_text: Optional[str] = Field(default=None, min_length=1, max_length=1000)


FieldDefinition = Annotated[
    Union[
        TextField,
        TextareaField,
        EmailField,
        PhoneField,
        DateField,
        CheckboxField,
        RadioField,
        ContentField,
        SignatureField,
    ],
    Field(discriminator="type"),
]


class Branding(SchemaModel):
    logo_url: Optional[str] = Field(default=None, pattern=r"^https?://\S+$")
    primary_color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    accent_color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)


class TemplatePayload(SchemaModel):
    name: str = Field(min_length=1)
    description: Optional[str] = Field(default=None, max_length=500)
    locale: str = DEFAULT_LOCALE
    branding: Optional[Branding] = None
    fields: list[FieldDefinition] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_field_ids(self):
        seen = set()
        for field in self.fields:
            if field.id in seen:
                raise ValueError(f"Duplicate field id: {field.id}")
            seen.add(field.id)
        return self

    def to_schema_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
