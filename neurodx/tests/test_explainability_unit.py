from neurodx.internal_core.contracts import SchemaVariant
from neurodx.results.explainability import (
    extract_explainability,
    extract_model_votes,
    parse_timestamp,
    pending_explainability,
)


def _feature(index: int) -> dict:
    return {
        "feature": f"feat_{index}",
        "electrode": f"E{index}",
        "metric": "rms",
        "status": "high",
        "actual_value": index * 1.5,
        "mentions_across_models": 10 - index,
    }


def _explanations(**summary) -> dict:
    return {
        "explanations": {
            "summary_insights": summary,
            "metadata": {
                "explanation_method": "SHAP",
                "explanation_timestamp": "2025-03-14T10:20:30Z",
                "models_explained": 4,
            },
        }
    }


def test_missing_explanations_section_is_pending() -> None:
    report = extract_explainability({"final_diagnosis": "Positivo"})
    assert report == pending_explainability()
    assert report.status == "pending"


def test_influential_features_keep_source_order_and_top_five() -> None:
    features = [_feature(i) for i in range(1, 9)]
    # Reverse mention order in the source must not be re-sorted.
    features[0]["mentions_across_models"] = 1
    report = extract_explainability(_explanations(most_influential_features=features))

    assert report.status == "available"
    assert [item.feature for item in report.influential_features] == [
        "feat_1",
        "feat_2",
        "feat_3",
        "feat_4",
        "feat_5",
    ]
    first = report.influential_features[0]
    assert first.electrode == "E1"
    assert first.value == 1.5
    assert first.mention_count == 1


def test_feature_limit_is_configurable() -> None:
    features = [_feature(i) for i in range(1, 9)]
    report = extract_explainability(_explanations(most_influential_features=features), feature_limit=2)
    assert len(report.influential_features) == 2


def test_clinical_insights_pass_through_in_order() -> None:
    insights = [f"insight {i}" for i in range(12)] + [None, "  ", 7]
    report = extract_explainability(_explanations(clinical_insights=insights))
    assert report.clinical_insights == [f"insight {i}" for i in range(12)]


def test_electrode_analysis_is_passed_through() -> None:
    report = extract_explainability(
        _explanations(
            electrode_analysis={
                "total_electrodes_affected": 3,
                "electrodes_with_anomalies": ["C3", "C4", "C3", "Fz"],
                "electrode_anomaly_details": {"C3": {"z": 2.4}},
            }
        )
    )
    assert report.status == "available"
    assert report.electrode_analysis is not None
    assert report.electrode_analysis.affected_count == 3
    assert report.electrode_analysis.affected_electrodes == ["C3", "C4", "Fz"]
    assert report.electrode_analysis.anomaly_details == {"C3": {"z": 2.4}}


def test_only_statistics_and_metadata_still_reports_pending() -> None:
    report = extract_explainability(
        _explanations(
            statistical_summary={
                "total_features_analyzed": 120,
                "features_with_high_impact": 8,
                "features_outside_normal": 5,
                "average_z_score_magnitude": 1.7,
            },
            electrode_analysis={"total_electrodes_affected": 0, "electrodes_with_anomalies": []},
        )
    )
    assert report.status == "pending"
    assert report.statistical_summary is not None
    assert report.statistical_summary.analyzed_count == 120
    assert report.statistical_summary.avg_z_score == 1.7
    assert report.metadata is not None
    assert report.metadata.models_explained_count == 4


def test_metadata_timestamp_validation() -> None:
    report = extract_explainability(_explanations(clinical_insights=["ok"]))
    assert report.metadata is not None
    assert report.metadata.timestamp == "2025-03-14T10:20:30Z"
    assert report.metadata.timestamp_iso == "2025-03-14T10:20:30+00:00"
    assert report.metadata.timestamp_displayable is True

    record = _explanations(clinical_insights=["ok"])
    record["explanations"]["metadata"] = {"explanation_timestamp": "yesterday-ish"}
    report = extract_explainability(record)
    assert report.metadata is not None
    assert report.metadata.timestamp == "yesterday-ish"
    assert report.metadata.timestamp_iso is None
    assert report.metadata.timestamp_displayable is False
    assert report.metadata.method == "SHAP"
    assert report.metadata.models_explained_count == 0


def test_parse_timestamp_accepts_epoch_seconds_and_millis() -> None:
    assert parse_timestamp(0) == "1970-01-01T00:00:00+00:00"
    assert parse_timestamp(1_700_000_000_000) == parse_timestamp(1_700_000_000)
    assert parse_timestamp("") is None
    assert parse_timestamp(True) is None


def test_malformed_sub_sections_are_skipped_independently() -> None:
    record = _explanations(
        clinical_insights="not a list",
        most_influential_features=["bad", _feature(1)],
        electrode_analysis=["not", "a", "mapping"],
    )
    report = extract_explainability(record)
    assert report.clinical_insights == []
    assert [item.feature for item in report.influential_features] == ["feat_1"]
    assert report.electrode_analysis is None


def test_flat_explanations_layout_is_accepted() -> None:
    report = extract_explainability({"explanations": {"clinical_insights": ["flat insight"]}})
    assert report.status == "available"
    assert report.clinical_insights == ["flat insight"]


def test_current_vote_extraction_with_probabilities() -> None:
    record = {
        "details": {
            "binary_model_votes": {
                "predictions": {"svm": 1, "random_forest": 1, "knn": 0},
                "probabilities": {"svm": [0.2, 0.8], "knn": "bad"},
                "ensemble_confidence": 0.8,
            },
            "classification_details": {
                "was_classified": True,
                "model_votes": {
                    "predictions": {"svm": 2, "random_forest": 5},
                    "probabilities": {"svm": [[0.1, 0.2, 0.6, 0.1]]},
                    "predicted_class": 2,
                    "ensemble_confidence": 0.6,
                },
            },
        }
    }
    anomalies: list[str] = []
    binary, classification = extract_model_votes(SchemaVariant.CURRENT, record, anomalies)

    assert binary is not None
    assert binary.votes == {"svm": 1, "random_forest": 1, "knn": 0}
    assert binary.tally == {0: 1, 1: 2}
    assert binary.probabilities == {"svm": [0.2, 0.8]}
    assert binary.ensemble_confidence == 0.8

    assert classification is not None
    assert classification.votes == {"svm": 2, "random_forest": 3}
    assert classification.predicted_class == 2
    assert classification.probabilities == {"svm": [[0.1, 0.2, 0.6, 0.1]]}

    assert "binary_probabilities_dropped:knn" in anomalies
    assert "classification_vote_clamped:random_forest" in anomalies


def test_legacy_vote_extraction_uses_flat_mappings() -> None:
    record = {
        "details": {
            "binary_model_votes": {"svm": 1, "knn": "x"},
            "binary_ensemble_confidence": 0.75,
            "classification_details": {"model_votes": {"svm": 1}, "ensemble_confidence": 0.5},
        }
    }
    anomalies: list[str] = []
    binary, classification = extract_model_votes(SchemaVariant.LEGACY, record, anomalies)
    assert binary is not None and classification is not None
    assert binary.votes == {"svm": 1}
    assert binary.ensemble_confidence == 0.75
    assert classification.votes == {"svm": 1}
    assert anomalies == ["binary_vote_dropped:knn"]


def test_vote_sections_absent_yield_none() -> None:
    binary, classification = extract_model_votes(SchemaVariant.CURRENT, {"final_diagnosis": "x"})
    assert binary is None
    assert classification is None


def test_malformed_entry_in_top_five_does_not_promote_later_features() -> None:
    features: list = [_feature(i) for i in range(1, 7)]
    features[2] = "broken"
    report = extract_explainability(_explanations(most_influential_features=features))
    assert [item.feature for item in report.influential_features] == [
        "feat_1",
        "feat_2",
        "feat_4",
        "feat_5",
    ]
