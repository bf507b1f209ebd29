from __future__ import annotations

"""
Service surface for diagnosis normalization.

Design intent:
- Keep API orchestration thin and typed.
- Delegate interpretation to `neurodx.results`.
- Return errors as values (200 + outcome state), never as clinical negatives.
"""

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from neurodx.internal_core.config import NeurodxConfig, load_config
from neurodx.internal_core.contracts import NormalizationOutcome, SeverityInfo, StudySummary
from neurodx.results.normalizer import normalize_result
from neurodx.results.severity import describe_severity
from neurodx.studies.cache import DiagnosisCache
from neurodx.studies.summary import summarize_studies


class NormalizeRequest(BaseModel):
    study_id: str | None = Field(default=None, max_length=128)
    ml_results: Any = None


class StudyRecordInput(BaseModel):
    id: int | str | None = None
    status: str = ""
    ml_results: Any = None


class StudiesSummaryRequest(BaseModel):
    studies: list[StudyRecordInput] = Field(default_factory=list)


class CacheStatsResponse(BaseModel):
    enabled: bool
    entries: int = 0
    max_entries: int = 0
    hits: int = 0
    misses: int = 0


_BOOT_CONFIG = load_config()

app = FastAPI(title="neurodx diagnosis service")
logger = logging.getLogger(__name__)


def _resolve_log_level(name: str) -> int:
    level = logging.getLevelNamesMapping().get(str(name or "").strip().upper())
    if level is None:
        logger.warning("unknown_log_level name=%s fallback=INFO", name)
        return logging.INFO
    return level


logging.getLogger().setLevel(_resolve_log_level(_BOOT_CONFIG.NEURODX_LOG_LEVEL))

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(_BOOT_CONFIG.NEURODX_CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_config() -> NeurodxConfig:
    existing = getattr(app.state, "neurodx_config", None)
    if isinstance(existing, NeurodxConfig):
        return existing
    created = load_config()
    setattr(app.state, "neurodx_config", created)
    return created


def _get_diagnosis_cache() -> DiagnosisCache:
    existing = getattr(app.state, "diagnosis_cache", None)
    if isinstance(existing, DiagnosisCache):
        return existing
    created = DiagnosisCache(max_entries=_get_config().NEURODX_CACHE_MAX_ENTRIES)
    setattr(app.state, "diagnosis_cache", created)
    return created


def _normalize(raw: Any) -> NormalizationOutcome:
    config = _get_config()
    return normalize_result(
        raw,
        feature_limit=config.NEURODX_FEATURE_LIMIT,
        default_method=config.NEURODX_DEFAULT_EXPLANATION_METHOD,
    )


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/diagnosis/normalize", response_model=NormalizationOutcome)
def normalize_diagnosis(request: NormalizeRequest) -> NormalizationOutcome:
    config = _get_config()
    if request.study_id and config.NEURODX_CACHE_ENABLED:
        outcome = _get_diagnosis_cache().get_or_compute(
            request.study_id, request.ml_results, _normalize
        )
    else:
        outcome = _normalize(request.ml_results)
    if outcome.state == "FAILED" and outcome.error is not None:
        logger.info(
            "diagnosis_unreadable study_id=%s kind=%s",
            request.study_id or "-",
            outcome.error.kind,
        )
    return outcome


@app.post("/studies/summary", response_model=StudySummary)
def studies_summary(request: StudiesSummaryRequest) -> StudySummary:
    return summarize_studies(
        [item.model_dump() for item in request.studies],
        normalize=_normalize,
    )


@app.get("/severity/{level}", response_model=SeverityInfo)
def severity(level: int) -> SeverityInfo:
    return describe_severity(level)


@app.get("/diagnosis/cache", response_model=CacheStatsResponse)
def diagnosis_cache_stats() -> CacheStatsResponse:
    config = _get_config()
    if not config.NEURODX_CACHE_ENABLED:
        return CacheStatsResponse(enabled=False)
    return CacheStatsResponse(enabled=True, **_get_diagnosis_cache().stats())
