"""
Per-type sanitization of submitted answers against a frozen template schema.

Fields are plain dicts as stored in ``TemplateVersion.schema_json``. Every
type-specific rule lives in the dispatch tables below.
"""

from typing import Any, Callable, Optional

TRUTHY_STRINGS = {"true", "1", "on"}


def coerce_string(value: Any) -> Optional[str]:
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    return None


def coerce_checkbox(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    if isinstance(value, (int, float)):
        return value != 0
    return False


def _sanitize_string(field: dict, value: Any, has_signature: bool) -> str:
    return coerce_string(value) or ""


def _sanitize_checkbox(field: dict, value: Any, has_signature: bool) -> bool:
    return coerce_checkbox(value)


def _sanitize_radio(field: dict, value: Any, has_signature: bool) -> str:
    if not isinstance(value, str):
        return ""
    trimmed = value.strip()
    option_ids = {option.get("id") for option in field.get("options", [])}
    return trimmed if trimmed in option_ids else ""


def _sanitize_signature(field: dict, value: Any, has_signature: bool) -> bool:
    # The image goes to blob storage; answers only keep the presence flag
    return has_signature


SANITIZERS: dict[str, Callable[[dict, Any, bool], Any]] = {
    "text": _sanitize_string,
    "textarea": _sanitize_string,
    "email": _sanitize_string,
    "phone": _sanitize_string,
    "date": _sanitize_string,
    "checkbox": _sanitize_checkbox,
    "radio": _sanitize_radio,
    "signature": _sanitize_signature,
}


def _is_filled_string(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


REQUIRED_CHECKS: dict[str, Callable[[Any], bool]] = {
    "text": _is_filled_string,
    "textarea": _is_filled_string,
    "email": _is_filled_string,
    "phone": _is_filled_string,
    "date": _is_filled_string,
    "radio": _is_filled_string,
    "checkbox": lambda value: value is True,
    "signature": lambda value: value is True,
}


def answer_fields(fields: list[dict]) -> list[dict]:
    """Fields that collect an answer (everything but static content)."""
    return [field for field in fields if field.get("type") in SANITIZERS]


def sanitize_responses(fields: list[dict], raw_responses: dict, has_signature: bool) -> dict:
    sanitized = {}
    for field in answer_fields(fields):
        sanitize = SANITIZERS[field["type"]]
        sanitized[field["id"]] = sanitize(field, raw_responses.get(field["id"]), has_signature)
    return sanitized


def find_missing(fields: list[dict], sanitized: dict) -> list[str]:
    """Labels of every required field left empty, in schema order."""
    missing = []
    for field in answer_fields(fields):
        if not field.get("required"):
            continue
        if not REQUIRED_CHECKS[field["type"]](sanitized.get(field["id"])):
            missing.append(field["label"])
    return missing


def _first_field(fields: list[dict], predicate: Callable[[dict], bool]) -> Optional[dict]:
    return next((field for field in fields if predicate(field)), None)


def _looks_like_name(field: dict) -> bool:
    if field.get("type") != "text":
        return False
    haystacks = (field.get("id", "").lower(), field.get("label", "").lower())
    return any(needle in haystack for haystack in haystacks for needle in ("name", "nome"))


def infer_respondent(fields: list[dict], sanitized: dict) -> dict:
    """
    Best-effort contact details: the first text field whose id or label
    mentions a name, the first email field and the first phone field.
    """
    lookups = {
        "name": _looks_like_name,
        "email": lambda field: field.get("type") == "email",
        "phone": lambda field: field.get("type") == "phone",
    }
    respondent = {}
    for key, predicate in lookups.items():
        field = _first_field(fields, predicate)
        respondent[key] = coerce_string(sanitized.get(field["id"])) if field else None
    return respondent
