"""Image ingress checks for analysis uploads.

The frontend sends the image as a ``data:`` URI (what ``FileReader``
produces).  We only check that something usable arrived: an image media
type, valid base64 and a size cap.  Remote ``http(s)`` URLs are forwarded
to the gateway as-is.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Optional

from app.core.errors import BadRequest

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_PATH = "uploaded-image"

_DATA_URI_RE = re.compile(
    r"^data:(?P<media_type>[\w.+-]+/[\w.+-]+)?(?P<params>(?:;[\w.+-]+=[\w.+-]+)*)(?P<base64>;base64)?,(?P<data>.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class AnalysisRequest:
    """One validated analyze call. Not persisted."""

    requester_id: str
    image_payload: str
    image_path: str
    media_type: Optional[str] = None
    size_bytes: Optional[int] = None


def _estimated_size(compact: str) -> int:
    padding = len(compact) - len(compact.rstrip("="))
    return max(0, len(compact) * 3 // 4 - min(padding, 2))


def _too_large(max_bytes: int) -> BadRequest:
    return BadRequest(f"Image is too large (max {max_bytes // (1024 * 1024)} MB)")


def _decoded_size(data: str, max_bytes: int) -> int:
    compact = "".join(data.split())
    estimate = _estimated_size(compact)
    if max_bytes > 0 and estimate > max_bytes:
        logger.info("Rejected image upload of ~%d bytes (limit %d)", estimate, max_bytes)
        raise _too_large(max_bytes)
    try:
        return len(base64.b64decode(compact, validate=True))
    except (binascii.Error, ValueError):
        raise BadRequest("Image data is not valid base64")


def build_analysis_request(
    *,
    requester_id: str,
    image_payload: Optional[str],
    image_path: Optional[str],
    max_bytes: int,
) -> AnalysisRequest:
    """Validate the raw upload and return an ``AnalysisRequest``."""
    payload = (image_payload or "").strip()
    if not payload:
        raise BadRequest("Missing image data")

    label = (image_path or "").strip() or DEFAULT_IMAGE_PATH

    if payload.startswith(("http://", "https://")):
        return AnalysisRequest(requester_id=requester_id, image_payload=payload, image_path=label)

    match = _DATA_URI_RE.match(payload)
    if not match:
        raise BadRequest("Image must be sent as a data URI or an http(s) URL")

    media_type = (match.group("media_type") or "").lower()
    if not media_type.startswith("image/"):
        raise BadRequest("Please upload an image file (JPG, PNG, etc.)")
    if not match.group("base64"):
        raise BadRequest("Image data URI must be base64 encoded")

    size = _decoded_size(match.group("data"), max_bytes)
    if size == 0:
        raise BadRequest("Missing image data")
    if max_bytes > 0 and size > max_bytes:
        logger.info("Rejected image upload of %d bytes (limit %d)", size, max_bytes)
        raise _too_large(max_bytes)

    return AnalysisRequest(
        requester_id=requester_id,
        image_payload=payload,
        image_path=label,
        media_type=media_type,
        size_bytes=size,
    )
