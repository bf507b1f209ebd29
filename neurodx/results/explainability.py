from __future__ import annotations

"""
Model-vote and explainability extraction.

Design intent:
- Read per-model votes for both schema variants into one `ModelVoteSet` shape.
- Read the optional `explanations` section one sub-section at a time, so a
  malformed block drops only itself.
- Distinguish "explanations pending" from "no payload" with an explicit status.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Mapping

from neurodx.internal_core.contracts import (
    ElectrodeAnalysis,
    ExplainabilityReport,
    ExplanationMetadata,
    InfluentialFeature,
    ModelVoteSet,
    SchemaVariant,
    StatisticalSummary,
    VoteStage,
)
from neurodx.utils.payload_fields import (
    as_list,
    as_mapping,
    clamp,
    coerce_float,
    coerce_int,
    coerce_text,
    get_path,
)

logger = logging.getLogger(__name__)

DEFAULT_FEATURE_LIMIT = 5
DEFAULT_EXPLANATION_METHOD = "SHAP"

_VOTE_CEILING: dict[str, int] = {"binary": 1, "classification": 3}

# Epoch values above this are milliseconds (year 5138 in seconds).
_EPOCH_MS_THRESHOLD = 1e11


def pending_explainability() -> ExplainabilityReport:
    return ExplainabilityReport(status="pending")


# ---------------------------------------------------------------------------
# Model votes
# ---------------------------------------------------------------------------


def extract_model_votes(
    variant: SchemaVariant,
    record: Mapping[str, Any],
    anomalies: list[str] | None = None,
) -> tuple[ModelVoteSet | None, ModelVoteSet | None]:
    sink = anomalies if anomalies is not None else []
    if variant == SchemaVariant.LEGACY:
        binary = _build_vote_set(
            "binary",
            raw_votes=get_path(record, "details", "binary_model_votes"),
            raw_probabilities=None,
            raw_predicted_class=None,
            raw_confidence=get_path(record, "details", "binary_ensemble_confidence"),
            anomalies=sink,
        )
        classification = _build_vote_set(
            "classification",
            raw_votes=get_path(record, "details", "classification_details", "model_votes"),
            raw_probabilities=None,
            raw_predicted_class=None,
            raw_confidence=get_path(record, "details", "classification_details", "ensemble_confidence"),
            anomalies=sink,
        )
        return binary, classification

    binary_block = as_mapping(get_path(record, "details", "binary_model_votes")) or {}
    classification_block = (
        as_mapping(get_path(record, "details", "classification_details", "model_votes")) or {}
    )
    binary = _build_vote_set(
        "binary",
        raw_votes=binary_block.get("predictions"),
        raw_probabilities=binary_block.get("probabilities"),
        raw_predicted_class=None,
        raw_confidence=binary_block.get("ensemble_confidence"),
        anomalies=sink,
    )
    classification = _build_vote_set(
        "classification",
        raw_votes=classification_block.get("predictions"),
        raw_probabilities=classification_block.get("probabilities"),
        raw_predicted_class=classification_block.get("predicted_class"),
        raw_confidence=classification_block.get("ensemble_confidence"),
        anomalies=sink,
    )
    return binary, classification


def _build_vote_set(
    stage: VoteStage,
    *,
    raw_votes: Any,
    raw_probabilities: Any,
    raw_predicted_class: Any,
    raw_confidence: Any,
    anomalies: list[str],
) -> ModelVoteSet | None:
    votes_map = as_mapping(raw_votes)
    probabilities_map = as_mapping(raw_probabilities)
    if votes_map is None and probabilities_map is None:
        return None

    ceiling = _VOTE_CEILING[stage]
    votes: dict[str, int] = {}
    for model, raw_vote in (votes_map or {}).items():
        vote = coerce_int(raw_vote)
        if vote is None:
            anomalies.append(f"{stage}_vote_dropped:{model}")
            continue
        bounded = int(clamp(vote, 0, ceiling))
        if bounded != vote:
            anomalies.append(f"{stage}_vote_clamped:{model}")
        votes[str(model)] = bounded

    probabilities: dict[str, list[Any]] = {}
    for model, raw_vector in (probabilities_map or {}).items():
        vector = _numeric_vector(raw_vector)
        if vector is None:
            anomalies.append(f"{stage}_probabilities_dropped:{model}")
            continue
        probabilities[str(model)] = vector

    predicted_class = coerce_int(raw_predicted_class)
    if predicted_class is not None:
        predicted_class = int(clamp(predicted_class, 0, ceiling))

    confidence = coerce_float(raw_confidence)
    if confidence is not None:
        confidence = clamp(confidence, 0.0, 1.0)

    return ModelVoteSet(
        stage=stage,
        votes=votes,
        probabilities=probabilities,
        predicted_class=predicted_class,
        ensemble_confidence=confidence,
        tally=dict(sorted(Counter(votes.values()).items())),
    )


def _numeric_vector(raw: Any) -> list[Any] | None:
    items = as_list(raw)
    if not items and not isinstance(raw, (list, tuple)):
        return None
    out: list[Any] = []
    for item in items:
        if isinstance(item, (list, tuple)):
            row = [coerce_float(value) for value in item]
            if any(value is None for value in row):
                return None
            out.append(row)
            continue
        value = coerce_float(item)
        if value is None:
            return None
        out.append(value)
    return out


# ---------------------------------------------------------------------------
# Explanations
# ---------------------------------------------------------------------------


def extract_explainability(
    record: Mapping[str, Any],
    *,
    feature_limit: int = DEFAULT_FEATURE_LIMIT,
    default_method: str = DEFAULT_EXPLANATION_METHOD,
) -> ExplainabilityReport:
    section = as_mapping(record.get("explanations"))
    if section is None:
        return pending_explainability()

    # Insight blocks normally sit under `summary_insights`; older writers put them at the top.
    insights = as_mapping(section.get("summary_insights")) or section

    clinical_insights = _extract_clinical_insights(insights.get("clinical_insights"))
    features = _extract_features(insights.get("most_influential_features"), feature_limit)
    electrodes = _extract_electrode_analysis(insights.get("electrode_analysis"))
    statistics = _extract_statistical_summary(insights.get("statistical_summary"))
    metadata = _extract_metadata(section.get("metadata"), default_method)

    has_findings = bool(
        clinical_insights
        or features
        or (electrodes is not None and electrodes.affected_electrodes)
    )
    return ExplainabilityReport(
        status="available" if has_findings else "pending",
        clinical_insights=clinical_insights,
        influential_features=features,
        electrode_analysis=electrodes,
        statistical_summary=statistics,
        metadata=metadata,
        binary_decision_factors=_mapping_entries(section.get("binary_decision_factors")),
        classification_factors=_mapping_entries(section.get("classification_factors")),
        models_agreement=_plain_dict(insights.get("models_agreement")),
    )


def _extract_clinical_insights(raw: Any) -> list[str]:
    out: list[str] = []
    for item in as_list(raw):
        if not isinstance(item, str):
            continue
        text = item.strip()
        if text:
            out.append(text)
    return out


def _extract_features(raw: Any, limit: int) -> list[InfluentialFeature]:
    if limit <= 0:
        return []
    out: list[InfluentialFeature] = []
    for item in as_list(raw)[:limit]:
        entry = as_mapping(item)
        if entry is None:
            continue
        out.append(
            InfluentialFeature(
                feature=coerce_text(entry.get("feature")),
                electrode=coerce_text(entry.get("electrode")),
                metric=coerce_text(entry.get("metric")),
                status=coerce_text(entry.get("status")),
                value=coerce_float(entry.get("actual_value", entry.get("value"))),
                mention_count=max(
                    0,
                    coerce_int(entry.get("mentions_across_models", entry.get("mention_count"))) or 0,
                ),
            )
        )
    return out


def _extract_electrode_analysis(raw: Any) -> ElectrodeAnalysis | None:
    block = as_mapping(raw)
    if block is None:
        return None
    electrodes: list[str] = []
    seen: set[str] = set()
    for item in as_list(block.get("electrodes_with_anomalies")):
        name = coerce_text(item)
        if name is None or name in seen:
            continue
        seen.add(name)
        electrodes.append(name)
    affected = coerce_int(block.get("total_electrodes_affected"))
    return ElectrodeAnalysis(
        affected_count=max(0, affected) if affected is not None else len(electrodes),
        affected_electrodes=electrodes,
        anomaly_details=_plain_dict(block.get("electrode_anomaly_details")) or {},
    )


def _extract_statistical_summary(raw: Any) -> StatisticalSummary | None:
    block = as_mapping(raw)
    if block is None:
        return None
    return StatisticalSummary(
        analyzed_count=coerce_int(block.get("total_features_analyzed")),
        high_impact_count=coerce_int(block.get("features_with_high_impact")),
        out_of_range_count=coerce_int(block.get("features_outside_normal")),
        avg_z_score=coerce_float(block.get("average_z_score_magnitude")),
    )


def _extract_metadata(raw: Any, default_method: str) -> ExplanationMetadata | None:
    block = as_mapping(raw)
    if block is None:
        return None
    raw_timestamp = block.get("explanation_timestamp")
    timestamp = coerce_text(raw_timestamp)
    timestamp_iso = parse_timestamp(raw_timestamp)
    if timestamp is not None and timestamp_iso is None:
        logger.warning("explanation_timestamp_not_displayable raw=%r", timestamp)
    notes = _plain_dict(block.get("interpretation_notes")) or {}
    return ExplanationMetadata(
        method=coerce_text(block.get("explanation_method")) or default_method,
        timestamp=timestamp,
        timestamp_iso=timestamp_iso,
        timestamp_displayable=timestamp_iso is not None,
        models_explained_count=max(0, coerce_int(block.get("models_explained")) or 0),
        interpretation_notes={
            str(key): str(value) for key, value in notes.items() if value is not None
        },
    )


def parse_timestamp(raw: Any) -> str | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return _from_epoch(float(raw))
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None
    epoch = coerce_float(text)
    if epoch is not None and text.replace(".", "", 1).isdigit():
        return _from_epoch(epoch)
    if text[-1] in {"Z", "z"}:
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).isoformat()
    except ValueError:
        return None


def _from_epoch(value: float) -> str | None:
    seconds = value / 1000.0 if abs(value) >= _EPOCH_MS_THRESHOLD else value
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return None


def _mapping_entries(raw: Any) -> list[dict[str, Any]]:
    return [dict(item) for item in as_list(raw) if isinstance(item, Mapping)]


def _plain_dict(raw: Any) -> dict[str, Any] | None:
    block = as_mapping(raw)
    if block is None:
        return None
    return {str(key): value for key, value in block.items()}
