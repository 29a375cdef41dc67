from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from membership_matrix.utils import get_logger


logger = get_logger(__name__)


def _decode_claims(token: str) -> dict[str, Any]:
    parts = token.split(".")
    if len(parts) < 2:
        return {}
    padding = "=" * (-len(parts[1]) % 4)
    try:
        payload = base64.urlsafe_b64decode(parts[1] + padding)
        claims = json.loads(payload)
    except (binascii.Error, ValueError):
        return {}
    return claims if isinstance(claims, dict) else {}


def principal_id_from_token(token: str | None) -> str:
    """Return the ``sub`` claim of a session JWT, or ``""``.

    The signature is not verified; the directory does that on every request.
    A missing or malformed token yields an empty id, which downstream means
    "not a manager".
    """
    if not token:
        return ""
    subject = _decode_claims(token).get("sub")
    if not isinstance(subject, str):
        logger.warning("Session token carries no usable subject")
        return ""
    return subject


__all__ = ["principal_id_from_token"]
