from __future__ import annotations

"""
Payload decoding for raw `ml_results` values.

The portal backend returns `ml_results` as `null` (study still pending), a
JSON string, or an already-parsed JSON object. All three land here and come
out as a tagged `DecodedPayload`; nothing raises past this boundary.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Literal

from neurodx.internal_core.contracts import DiagnosisError

logger = logging.getLogger(__name__)

DecodeStatus = Literal["empty", "decoded", "failed"]


@dataclass(frozen=True)
class DecodedPayload:
    status: DecodeStatus
    record: Any = None
    error: DiagnosisError | None = None

    @property
    def is_empty(self) -> bool:
        return self.status == "empty"

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"


EMPTY_PAYLOAD = DecodedPayload(status="empty")


def decode_payload(raw: Any) -> DecodedPayload:
    if raw is None:
        return EMPTY_PAYLOAD

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            return _parse_failure(f"Payload is not valid UTF-8: {exc}")

    if not isinstance(raw, str):
        return DecodedPayload(status="decoded", record=raw)

    text = raw.lstrip("\ufeff").strip()
    if not text:
        return EMPTY_PAYLOAD

    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as exc:
        return _parse_failure(f"Payload is not valid JSON: {exc}")

    # Some writers store the JSON document as a JSON string literal.
    if isinstance(data, str) and data.strip()[:1] in {"{", "["}:
        try:
            data = json.loads(data)
        except (ValueError, RecursionError) as exc:
            return _parse_failure(f"Double-encoded payload is not valid JSON: {exc}")

    if data is None:
        return EMPTY_PAYLOAD
    return DecodedPayload(status="decoded", record=data)


def _parse_failure(message: str) -> DecodedPayload:
    logger.debug("payload_decode_failed detail=%s", message)
    return DecodedPayload(
        status="failed",
        error=DiagnosisError(kind="PARSE_ERROR", message=message),
    )
