"""Response envelope decoder.

The lookup endpoint answers with ``{"data": {...}}`` or
``{"error": {...}}`` and no tag saying which.  Decoding is an ordered
attempt: the success shape first, then the error shape, then failure.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from cyclecert.core.errors import MalformedResponseError, RemoteError
from cyclecert.models.certificate import CertificateArtifact
from cyclecert.models.envelopes import DataEnvelope, ErrorEnvelope

logger = logging.getLogger(__name__)

MAX_DIAGNOSTIC_BODY = 512
REDACTED = "[REDACTED]"

_PRIVATE_KEY_RE = re.compile(r'("private_key"\s*:\s*)"(?:[^"\\]|\\.)*"')
_PEM_KEY_RE = re.compile(
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?(-----END [A-Z ]*PRIVATE KEY-----|$)",
    re.DOTALL,
)


def redact_body(raw: bytes | str, limit: int = MAX_DIAGNOSTIC_BODY) -> str:
    """Return *raw* as text with private key material removed, truncated."""
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    text = _PRIVATE_KEY_RE.sub(rf'\1"{REDACTED}"', text)
    text = _PEM_KEY_RE.sub(REDACTED, text)
    if len(text) > limit:
        text = text[:limit] + "...(truncated)"
    return text


def decode_envelope(raw: bytes | str | dict[str, Any]) -> CertificateArtifact:
    """Decode a lookup response into a certificate artifact.

    Raises
    ------
    RemoteError
        The body is a well-formed error envelope.
    MalformedResponseError
        The body is not JSON, or matches neither envelope shape.
    """
    if isinstance(raw, dict):
        payload: Any = raw
        original: bytes | str = json.dumps(raw, default=str)
    else:
        original = raw
        try:
            payload = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            raise MalformedResponseError(
                "Response body is not valid JSON", body=redact_body(original)
            ) from None

    try:
        return DataEnvelope.model_validate(payload).data
    except ValidationError as data_exc:
        data_errors = data_exc.error_count()

    try:
        envelope = ErrorEnvelope.model_validate(payload)
    except ValidationError:
        logger.debug(
            "Response matched neither envelope (%d data-shape errors)", data_errors
        )
        raise MalformedResponseError(
            "Response matched neither the data nor the error envelope",
            body=redact_body(original),
        ) from None

    err = envelope.error
    raise RemoteError(err.title, err.detail, code=err.code, status=err.status)
