from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DiagnosisErrorKind = Literal["PARSE_ERROR", "EMPTY", "UNKNOWN_SCHEMA"]

PipelineState = Literal[
    "EMPTY", "DECODING", "CLASSIFYING", "AGGREGATING", "DONE", "FAILED"
]

TerminalState = Literal["EMPTY", "DONE", "FAILED"]

DisplayState = Literal["processing", "ready", "unreadable"]

SeverityBucket = Literal["green", "yellow", "orange", "red", "gray"]

DiagnosisPolarity = Literal["positive", "negative", "indeterminate"]

ExplainabilityStatus = Literal["available", "pending"]

ConfidenceSource = Literal["ensemble", "percentage", "score", "none"]

VoteStage = Literal["binary", "classification"]


class SchemaVariant(str, Enum):
    LEGACY = "legacy"
    CURRENT = "current"


class DiagnosisError(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: DiagnosisErrorKind
    message: str


class ConfidenceSet(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    binary: float = Field(default=0.0, ge=0.0, le=1.0)
    classification: float = Field(default=0.0, ge=0.0, le=1.0)
    overall: int = Field(default=0, ge=0, le=100)
    binary_present: bool = False
    classification_present: bool = False
    source: ConfidenceSource = "none"


class SeverityInfo(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    level: int
    bucket: SeverityBucket
    label: str
    description: str
    anomalous: bool = False


class ModelVoteSet(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    stage: VoteStage
    votes: Dict[str, int] = Field(default_factory=dict)
    probabilities: Dict[str, List[Any]] = Field(default_factory=dict)
    predicted_class: Optional[int] = None
    ensemble_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    tally: Dict[int, int] = Field(default_factory=dict)


class InfluentialFeature(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    feature: Optional[str] = None
    electrode: Optional[str] = None
    metric: Optional[str] = None
    status: Optional[str] = None
    value: Optional[float] = None
    mention_count: int = 0


class ElectrodeAnalysis(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    affected_count: int = 0
    affected_electrodes: List[str] = Field(default_factory=list)
    anomaly_details: Dict[str, Any] = Field(default_factory=dict)


class StatisticalSummary(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    analyzed_count: Optional[int] = None
    high_impact_count: Optional[int] = None
    out_of_range_count: Optional[int] = None
    avg_z_score: Optional[float] = None


class ExplanationMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    method: str = "SHAP"
    timestamp: Optional[str] = None
    timestamp_iso: Optional[str] = None
    timestamp_displayable: bool = False
    models_explained_count: int = 0
    interpretation_notes: Dict[str, str] = Field(default_factory=dict)


class ExplainabilityReport(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    status: ExplainabilityStatus = "pending"
    clinical_insights: List[str] = Field(default_factory=list)
    influential_features: List[InfluentialFeature] = Field(default_factory=list)
    electrode_analysis: Optional[ElectrodeAnalysis] = None
    statistical_summary: Optional[StatisticalSummary] = None
    metadata: Optional[ExplanationMetadata] = None
    binary_decision_factors: List[Dict[str, Any]] = Field(default_factory=list)
    classification_factors: List[Dict[str, Any]] = Field(default_factory=list)
    models_agreement: Optional[Dict[str, Any]] = None


class NormalizedDiagnosis(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_variant: SchemaVariant
    final_diagnosis: str = ""
    polarity: DiagnosisPolarity = "indeterminate"
    level: int = Field(ge=0, le=3)
    severity: SeverityInfo
    confidence: ConfidenceSet
    binary_votes: Optional[ModelVoteSet] = None
    classification_votes: Optional[ModelVoteSet] = None
    explainability: Optional[ExplainabilityReport] = None
    severity_note: Optional[str] = None
    process_metadata: Optional[Dict[str, Any]] = None
    anomalies: List[str] = Field(default_factory=list)


class NormalizationOutcome(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    state: TerminalState
    display_state: DisplayState
    diagnosis: Optional[NormalizedDiagnosis] = None
    error: Optional[DiagnosisError] = None


class StudySummary(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    total: int = 0
    completed: int = 0
    pending: int = 0
    positive: int = 0
    unreadable: int = 0
