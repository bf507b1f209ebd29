from __future__ import annotations

"""
Result normalizer: raw `ml_results` in, render-safe view model out.

Design intent:
- Hard-fail on decode/classify (no partial diagnosis from an unreadable payload).
- Soft-fail on explainability (enrichment only; falls back to "pending").
- Never raise; every outcome is a `NormalizationOutcome` value.
"""

import logging
from typing import Any, Mapping

from neurodx.internal_core.contracts import (
    DiagnosisError,
    DiagnosisErrorKind,
    DiagnosisPolarity,
    DisplayState,
    ExplainabilityReport,
    NormalizationOutcome,
    NormalizedDiagnosis,
    PipelineState,
    SchemaVariant,
)
from neurodx.results.confidence import aggregate_confidence
from neurodx.results.decoder import decode_payload
from neurodx.results.explainability import (
    DEFAULT_EXPLANATION_METHOD,
    DEFAULT_FEATURE_LIMIT,
    extract_explainability,
    extract_model_votes,
    pending_explainability,
)
from neurodx.results.schema import SchemaClassification, classify_schema
from neurodx.results.severity import describe_severity, resolve_level
from neurodx.utils.payload_fields import as_mapping, coerce_text

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[str, set[str]] = {
    "EMPTY": {"DECODING"},
    "DECODING": {"EMPTY", "CLASSIFYING", "FAILED"},
    "CLASSIFYING": {"AGGREGATING", "FAILED"},
    "AGGREGATING": {"DONE", "FAILED"},
    "DONE": set(),
    "FAILED": set(),
}

_DISPLAY_STATE: dict[str, DisplayState] = {
    "EMPTY": "processing",
    "DONE": "ready",
    "FAILED": "unreadable",
}


class NormalizationError(RuntimeError):
    """Raised inside the pipeline when a core stage cannot continue."""

    def __init__(self, kind: DiagnosisErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_error(self) -> DiagnosisError:
        return DiagnosisError(kind=self.kind, message=self.message)


class _PipelineRun:
    def __init__(self) -> None:
        self.state: PipelineState = "EMPTY"
        self.history: list[PipelineState] = ["EMPTY"]

    def advance(self, target: PipelineState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise NormalizationError(
                "UNKNOWN_SCHEMA", f"Illegal normalizer transition {self.state} -> {target}."
            )
        logger.debug("normalize_transition from=%s to=%s", self.state, target)
        self.state = target
        self.history.append(target)


def normalize_result(
    raw: Any,
    *,
    feature_limit: int = DEFAULT_FEATURE_LIMIT,
    default_method: str = DEFAULT_EXPLANATION_METHOD,
) -> NormalizationOutcome:
    run = _PipelineRun()
    if raw is None:
        return _outcome("EMPTY")

    try:
        run.advance("DECODING")
        decoded = decode_payload(raw)
        if decoded.is_empty:
            run.advance("EMPTY")
            return _outcome("EMPTY")
        if decoded.is_failed:
            error = decoded.error or DiagnosisError(kind="PARSE_ERROR", message="Payload decode failed.")
            raise NormalizationError(error.kind, error.message)

        run.advance("CLASSIFYING")
        classification = classify_schema(decoded.record)
        if isinstance(classification, DiagnosisError):
            raise NormalizationError(classification.kind, classification.message)

        run.advance("AGGREGATING")
        diagnosis = _build_diagnosis(
            decoded.record,
            classification,
            feature_limit=feature_limit,
            default_method=default_method,
        )
        run.advance("DONE")
        return _outcome("DONE", diagnosis=diagnosis)
    except NormalizationError as exc:
        logger.info(
            "normalize_failed kind=%s stage=%s detail=%s", exc.kind, run.state, exc.message
        )
        return _outcome("FAILED", error=exc.to_error())
    except Exception as exc:
        logger.exception("normalize_unexpected_failure stage=%s", run.state)
        return _outcome(
            "FAILED",
            error=DiagnosisError(
                kind="UNKNOWN_SCHEMA",
                message=f"Payload could not be interpreted: {type(exc).__name__}",
            ),
        )


def diagnosis_or_error(outcome: NormalizationOutcome) -> NormalizedDiagnosis | DiagnosisError:
    if outcome.diagnosis is not None:
        return outcome.diagnosis
    if outcome.error is not None:
        return outcome.error
    return DiagnosisError(kind="EMPTY", message="No result yet; the study is still processing.")


def diagnosis_polarity(final_diagnosis: str | None) -> DiagnosisPolarity:
    text = (final_diagnosis or "").strip().lower()
    if "positiv" in text:
        return "positive"
    if "negativ" in text:
        return "negative"
    return "indeterminate"


def _build_diagnosis(
    record: Mapping[str, Any],
    classification: SchemaClassification,
    *,
    feature_limit: int,
    default_method: str,
) -> NormalizedDiagnosis:
    variant = classification.variant
    anomalies: list[str] = []
    if classification.sections_missing:
        anomalies.append("schema_sections_missing")

    level, level_anomalies = resolve_level(record)
    anomalies.extend(level_anomalies)

    confidence, confidence_anomalies = aggregate_confidence(variant, record)
    anomalies.extend(confidence_anomalies)

    binary_votes, classification_votes = extract_model_votes(variant, record, anomalies)

    final_diagnosis = coerce_text(record.get("final_diagnosis")) or ""
    explainability = _safe_explainability(
        variant,
        record,
        anomalies,
        feature_limit=feature_limit,
        default_method=default_method,
    )

    process_metadata = as_mapping(record.get("process_metadata"))
    if anomalies:
        logger.warning(
            "normalize_anomalies variant=%s count=%s items=%s",
            variant.value,
            len(anomalies),
            anomalies[:5],
        )

    return NormalizedDiagnosis(
        schema_variant=variant,
        final_diagnosis=final_diagnosis,
        polarity=diagnosis_polarity(final_diagnosis),
        level=level,
        severity=describe_severity(level),
        confidence=confidence,
        binary_votes=binary_votes,
        classification_votes=classification_votes,
        explainability=explainability,
        severity_note=coerce_text(record.get("severity_description")),
        process_metadata=dict(process_metadata) if process_metadata is not None else None,
        anomalies=anomalies,
    )


def _safe_explainability(
    variant: SchemaVariant,
    record: Mapping[str, Any],
    anomalies: list[str],
    *,
    feature_limit: int,
    default_method: str,
) -> ExplainabilityReport | None:
    if variant == SchemaVariant.LEGACY and record.get("explanations") is None:
        return None
    try:
        return extract_explainability(
            record, feature_limit=feature_limit, default_method=default_method
        )
    except Exception:
        # Explainability is enrichment; the diagnosis still completes.
        logger.warning("explainability_extraction_failed", exc_info=True)
        anomalies.append("explainability_extraction_failed")
        return pending_explainability()


def _outcome(
    state: str,
    *,
    diagnosis: NormalizedDiagnosis | None = None,
    error: DiagnosisError | None = None,
) -> NormalizationOutcome:
    return NormalizationOutcome(
        state=state,  # type: ignore[arg-type]
        display_state=_DISPLAY_STATE[state],
        diagnosis=diagnosis,
        error=error,
    )
