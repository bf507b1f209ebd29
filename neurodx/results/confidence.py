from __future__ import annotations

"""
Ensemble confidence aggregation.

Stage confidences are unit-scale ([0, 1]); the overall figure is an integer
percentage. Out-of-range inputs are clamped before they are combined and the
clamp is reported back as an anomaly string.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from neurodx.internal_core.contracts import ConfidenceSet, SchemaVariant
from neurodx.utils.payload_fields import clamp, coerce_float, get_path, round_half_up


@dataclass(frozen=True)
class StageReading:
    value: float = 0.0
    present: bool = False


def aggregate_confidence(
    variant: SchemaVariant,
    record: Mapping[str, Any],
) -> tuple[ConfidenceSet, list[str]]:
    anomalies: list[str] = []

    if variant == SchemaVariant.LEGACY:
        binary = _read_unit(
            get_path(record, "details", "binary_ensemble_confidence"),
            "binary_confidence",
            anomalies,
        )
        classification = _read_unit(
            get_path(record, "details", "classification_details", "ensemble_confidence"),
            "classification_confidence",
            anomalies,
        )
        percentage = _read_percentage(record.get("confidence_percentage"), anomalies)
        if percentage is not None:
            return _build(binary, classification, percentage, "percentage"), anomalies
        score = _read_unit(record.get("confidence_score"), "confidence_score", anomalies)
        if score.present:
            return _build(binary, classification, round_half_up(score.value * 100), "score"), anomalies
    else:
        binary = _read_unit(
            get_path(record, "details", "binary_model_votes", "ensemble_confidence"),
            "binary_confidence",
            anomalies,
        )
        classification = _read_unit(
            get_path(record, "details", "classification_details", "model_votes", "ensemble_confidence"),
            "classification_confidence",
            anomalies,
        )

    overall = combine_stages(binary, classification)
    source = "ensemble" if (binary.present or classification.present) else "none"
    return _build(binary, classification, overall, source), anomalies


def combine_stages(binary: StageReading, classification: StageReading) -> int:
    if binary.present and classification.present:
        return round_half_up(((binary.value + classification.value) / 2) * 100)
    if binary.present:
        return round_half_up(binary.value * 100)
    if classification.present:
        return round_half_up(classification.value * 100)
    return 0


def _build(
    binary: StageReading,
    classification: StageReading,
    overall: int,
    source: str,
) -> ConfidenceSet:
    return ConfidenceSet(
        binary=binary.value,
        classification=classification.value,
        overall=int(clamp(overall, 0, 100)),
        binary_present=binary.present,
        classification_present=classification.present,
        source=source,  # type: ignore[arg-type]
    )


def _read_unit(raw: Any, name: str, anomalies: list[str]) -> StageReading:
    number = coerce_float(raw)
    if number is None:
        if raw is not None:
            anomalies.append(f"{name}_not_numeric")
        return StageReading()
    bounded = clamp(number, 0.0, 1.0)
    if bounded != number:
        anomalies.append(f"{name}_clamped")
    return StageReading(value=bounded, present=True)


def _read_percentage(raw: Any, anomalies: list[str]) -> int | None:
    number = coerce_float(raw)
    if number is None:
        if raw is not None:
            anomalies.append("confidence_percentage_not_numeric")
        return None
    bounded = clamp(number, 0.0, 100.0)
    if bounded != number:
        anomalies.append("confidence_percentage_clamped")
    return round_half_up(bounded)
