import base64
import binascii
import re
from dataclasses import dataclass

from modules.common.errors import BadRequestError

MAX_SIGNATURE_DATA_URL_SIZE = 2 * 1024 * 1024  # 2 MiB, measured on the encoded data URL
SIGNATURE_CONTENT_TYPE = "image/png"
PNG_MAGIC = b"\x89PNG"

DATA_URL_REGEX = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)


@dataclass(frozen=True)
class DecodedSignature:
    data: bytes
    content_type: str


def decode_signature_data_url(data_url: str) -> DecodedSignature:
    """
    Decodes a base64 PNG data URL, raising BadRequestError with a specific
    message when the payload is too large, malformed, not PNG, or not a real PNG.
    """
    if len(data_url) > MAX_SIGNATURE_DATA_URL_SIZE:
        raise BadRequestError("Signature is too large. Maximum size: 2MB.")

    match = DATA_URL_REGEX.match(data_url)
    if not match:
        raise BadRequestError("Invalid signature format.")
    content_type, encoded = match.group(1), match.group(2)

    if content_type != SIGNATURE_CONTENT_TYPE:
        raise BadRequestError("Signature must be a PNG image.")

    encoded = encoded.strip()
    encoded += "=" * (-len(encoded) % 4)
    try:
        data = base64.b64decode(encoded)
    except (binascii.Error, ValueError):
        raise BadRequestError("Invalid signature format.")

    if not data.startswith(PNG_MAGIC):
        raise BadRequestError("Signature is not a valid PNG file.")

    return DecodedSignature(data=data, content_type=content_type)
