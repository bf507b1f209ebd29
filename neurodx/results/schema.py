from __future__ import annotations

"""
Result-schema classification.

Two shapes are observed from the ML pipeline:
- legacy: flat `confidence_percentage` and plain `{model: vote}` mappings.
- current: nested `predictions` / `ensemble_confidence` blocks plus `explanations`.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from neurodx.internal_core.contracts import DiagnosisError, SchemaVariant
from neurodx.utils.payload_fields import as_mapping, get_path, has_content, is_integral

# Keys that only appear inside a current-schema vote block.
CURRENT_VOTE_BLOCK_KEYS: frozenset[str] = frozenset(
    {"predictions", "probabilities", "ensemble_confidence", "predicted_class"}
)


@dataclass(frozen=True)
class SchemaClassification:
    variant: SchemaVariant
    sections_missing: bool = False


def classify_schema(record: Any) -> SchemaClassification | DiagnosisError:
    if not isinstance(record, Mapping):
        return DiagnosisError(
            kind="UNKNOWN_SCHEMA",
            message=f"Payload is a {type(record).__name__}, expected a JSON object.",
        )
    if not has_content(record):
        return DiagnosisError(kind="UNKNOWN_SCHEMA", message="Payload object is empty.")

    if _has_current_markers(record):
        return SchemaClassification(variant=SchemaVariant.CURRENT)
    if _has_legacy_markers(record):
        return SchemaClassification(variant=SchemaVariant.LEGACY)
    return SchemaClassification(variant=SchemaVariant.CURRENT, sections_missing=True)


def is_flat_vote_mapping(value: Any) -> bool:
    votes = as_mapping(value)
    if not votes:
        return False
    if CURRENT_VOTE_BLOCK_KEYS.intersection(votes.keys()):
        return False
    return all(is_integral(vote) for vote in votes.values())


def _has_current_markers(record: Mapping[str, Any]) -> bool:
    binary_predictions = get_path(record, "details", "binary_model_votes", "predictions")
    classification_predictions = get_path(
        record, "details", "classification_details", "model_votes", "predictions"
    )
    return as_mapping(binary_predictions) is not None or as_mapping(classification_predictions) is not None


def _has_legacy_markers(record: Mapping[str, Any]) -> bool:
    if record.get("confidence_percentage") is not None:
        return True
    return is_flat_vote_mapping(get_path(record, "details", "binary_model_votes"))
