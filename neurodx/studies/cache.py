from __future__ import annotations

import hashlib
import json
from collections import OrderedDict
from threading import RLock
from typing import Any, Callable, Optional, Tuple

from neurodx.internal_core.contracts import NormalizationOutcome
from neurodx.results.decoder import decode_payload

CacheKey = Tuple[str, str]


def payload_fingerprint(raw: Any) -> str:
    decoded = decode_payload(raw)
    if decoded.is_empty:
        return "empty"
    if decoded.status == "decoded":
        canonical = json.dumps(
            decoded.record,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    data = raw if isinstance(raw, (bytes, bytearray)) else str(raw).encode("utf-8")
    return "raw:" + hashlib.sha256(bytes(data)).hexdigest()


class DiagnosisCache:
    def __init__(self, max_entries: int = 512):
        self._max_entries = max(1, int(max_entries))
        self._lock = RLock()
        self._entries: "OrderedDict[CacheKey, NormalizationOutcome]" = OrderedDict()
        self._hits = 0
        self._misses = 0

    def key_for(self, study_id: str, raw: Any) -> CacheKey:
        return (str(study_id), payload_fingerprint(raw))

    def get(self, study_id: str, raw: Any) -> Optional[NormalizationOutcome]:
        key = self.key_for(study_id, raw)
        with self._lock:
            outcome = self._entries.get(key)
            if outcome is None:
                self._misses += 1
            else:
                self._hits += 1
            return outcome

    def put(self, study_id: str, raw: Any, outcome: NormalizationOutcome) -> None:
        key = self.key_for(study_id, raw)
        with self._lock:
            self._entries[key] = outcome
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def get_or_compute(
        self,
        study_id: str,
        raw: Any,
        compute: Callable[[Any], NormalizationOutcome],
    ) -> NormalizationOutcome:
        cached = self.get(study_id, raw)
        if cached is not None:
            return cached
        # Computed outside the lock.
        outcome = compute(raw)
        self.put(study_id, raw, outcome)
        return outcome

    def invalidate_study(self, study_id: str) -> int:
        sid = str(study_id)
        with self._lock:
            stale = [key for key in self._entries if key[0] == sid]
            for key in stale:
                self._entries.pop(key, None)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self._max_entries,
                "hits": self._hits,
                "misses": self._misses,
            }
