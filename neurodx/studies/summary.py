from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from neurodx.internal_core.contracts import NormalizationOutcome, StudySummary
from neurodx.results.normalizer import normalize_result


def summarize_studies(
    studies: Iterable[Mapping[str, Any]],
    *,
    normalize: Callable[[Any], NormalizationOutcome] = normalize_result,
) -> StudySummary:
    """
    Dashboard counters over portal study records.

    Positive counts come from the normalized diagnosis only. A payload that
    cannot be read is counted as unreadable, never as positive or negative.
    """

    total = completed = pending = positive = unreadable = 0
    for study in studies:
        total += 1
        status = str(study.get("status") or "").strip().upper()
        if status == "COMPLETED":
            completed += 1
        elif status == "PENDING":
            pending += 1

        outcome = normalize(study.get("ml_results"))
        if outcome.state == "FAILED":
            unreadable += 1
        elif outcome.diagnosis is not None and outcome.diagnosis.polarity == "positive":
            positive += 1

    return StudySummary(
        total=total,
        completed=completed,
        pending=pending,
        positive=positive,
        unreadable=unreadable,
    )
