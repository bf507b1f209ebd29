from __future__ import annotations

"""
Severity mapping for the 0-3 classification level.

`describe_severity` is a total lookup over a fixed table. `resolve_level`
reads the level out of a decoded payload and clamps anything outside 0-3,
reporting what it did instead of renumbering silently.
"""

from typing import Any, Mapping

from neurodx.internal_core.contracts import SeverityInfo
from neurodx.utils.payload_fields import clamp, coerce_float, get_path, round_half_up

MIN_LEVEL = 0
MAX_LEVEL = 3

_SEVERITY_TABLE: dict[int, tuple[str, str, str]] = {
    0: (
        "green",
        "Normal",
        "No significant alterations detected in the electromyographic activity.",
    ),
    1: (
        "yellow",
        "Mild",
        "Mild alterations suggesting early neuromuscular changes.",
    ),
    2: (
        "orange",
        "Moderate",
        "Moderate alterations indicating possible pathological change in the neuromuscular system.",
    ),
    3: (
        "red",
        "Severe",
        "Severe alterations suggesting significant neuromuscular pathology.",
    ),
}

_UNKNOWN_SEVERITY = ("gray", "Unknown", "Automatic classification completed.")


def describe_severity(level: Any) -> SeverityInfo:
    key = level if isinstance(level, int) and not isinstance(level, bool) else None
    entry = _SEVERITY_TABLE.get(key) if key is not None else None
    if entry is None:
        bucket, label, description = _UNKNOWN_SEVERITY
        return SeverityInfo(
            level=key if key is not None else -1,
            bucket=bucket,  # type: ignore[arg-type]
            label=label,
            description=description,
            anomalous=True,
        )
    bucket, label, description = entry
    return SeverityInfo(
        level=key,
        bucket=bucket,  # type: ignore[arg-type]
        label=label,
        description=description,
        anomalous=False,
    )


def clamp_level(raw: Any) -> tuple[int, list[str]]:
    if raw is None:
        return MIN_LEVEL, []

    number = coerce_float(raw)
    if number is None:
        return MIN_LEVEL, [f"classification_level_unparseable:{raw!r}"]

    anomalies: list[str] = []
    level = round_half_up(number)
    if not float(number).is_integer():
        anomalies.append(f"classification_level_non_integer:{number:g}")
    bounded = int(clamp(level, MIN_LEVEL, MAX_LEVEL))
    if bounded != level:
        anomalies.append(f"classification_level_clamped:{level}->{bounded}")
    return bounded, anomalies


def resolve_level(record: Mapping[str, Any]) -> tuple[int, list[str]]:
    for path in (
        ("classification_level",),
        ("details", "classification_details", "final_level_assigned"),
        ("details", "classification_details", "model_votes", "predicted_class"),
    ):
        raw = get_path(record, *path)
        if raw is not None:
            return clamp_level(raw)
    return MIN_LEVEL, []
