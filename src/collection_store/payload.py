"""Binary payload normalization for transport.

Documents may carry file contents (images, audio, downloads).  Raw bytes
cannot travel in a JSON body, so before a document leaves the process
every binary value is replaced with a self-describing ``data:`` URL.  The
remote service stores the resulting string as opaque document content.

Only binary values are special-cased; mappings and sequences are walked,
and every other value is returned as-is.

Usage:
    from collection_store.payload import BinaryContent, normalize_document

    doc = {"id": "p1", "image": BinaryContent(png_bytes, "image/png")}
    normalize_document(doc)
    # {"id": "p1", "image": "data:image/png;base64,iVBORw0..."}
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Any

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class BinaryContent:
    """Binary value tagged with its media type."""

    data: bytes
    media_type: str = DEFAULT_MEDIA_TYPE

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"


BINARY_TYPES = (BinaryContent, bytes, bytearray, memoryview)


def to_data_url(value: BinaryContent | bytes | bytearray | memoryview) -> str:
    """Encode a binary value as a ``data:`` URL string."""
    if isinstance(value, BinaryContent):
        return value.to_data_url()
    return BinaryContent(bytes(value)).to_data_url()


def parse_data_url(url: str) -> BinaryContent:
    """Decode a base64 ``data:`` URL produced by ``to_data_url``.

    Raises:
        ValueError: If *url* is not a base64 data URL.
    """
    if not url.startswith("data:") or "," not in url:
        raise ValueError("Not a data URL")
    header, payload = url[len("data:"):].split(",", 1)
    if not header.endswith(";base64"):
        raise ValueError("Only base64 data URLs are supported")
    media_type = header[: -len(";base64")] or DEFAULT_MEDIA_TYPE
    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    return BinaryContent(data, media_type)


def normalize_document(value: Any) -> Any:
    """Return a copy of *value* with every binary leaf encoded as text.

    Dict keys are preserved; tuples become lists (JSON has no tuple).
    The input is never mutated.
    """
    if isinstance(value, BINARY_TYPES):
        return to_data_url(value)
    if isinstance(value, dict):
        return {k: normalize_document(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_document(v) for v in value]
    return value

