from neurodx.results.severity import clamp_level, describe_severity, resolve_level


def test_severity_table_is_fixed() -> None:
    expected = {
        0: ("green", "Normal"),
        1: ("yellow", "Mild"),
        2: ("orange", "Moderate"),
        3: ("red", "Severe"),
    }
    for level, (bucket, label) in expected.items():
        info = describe_severity(level)
        assert info.level == level
        assert info.bucket == bucket
        assert info.label == label
        assert info.anomalous is False
        assert info.description
    assert describe_severity(2) == describe_severity(2)


def test_unknown_levels_map_to_anomalous_unknown() -> None:
    for level in (-1, 4, 99, "2", None, 2.5, True):
        info = describe_severity(level)
        assert info.label == "Unknown"
        assert info.bucket == "gray"
        assert info.anomalous is True
        assert "classification completed" in info.description.lower()


def test_clamp_level_flags_out_of_range_values() -> None:
    assert clamp_level(2) == (2, [])
    assert clamp_level("3") == (3, [])
    assert clamp_level(None) == (0, [])

    level, anomalies = clamp_level(7)
    assert level == 3
    assert anomalies == ["classification_level_clamped:7->3"]

    level, anomalies = clamp_level(-2)
    assert level == 0
    assert anomalies == ["classification_level_clamped:-2->0"]


def test_clamp_level_handles_non_integer_and_garbage() -> None:
    level, anomalies = clamp_level(1.5)
    assert level == 2
    assert anomalies == ["classification_level_non_integer:1.5"]

    level, anomalies = clamp_level("severe")
    assert level == 0
    assert anomalies and anomalies[0].startswith("classification_level_unparseable")


def test_resolve_level_falls_back_to_classification_details() -> None:
    record = {"details": {"classification_details": {"final_level_assigned": 3}}}
    assert resolve_level(record) == (3, [])

    record = {"details": {"classification_details": {"model_votes": {"predicted_class": 1}}}}
    assert resolve_level(record) == (1, [])

    assert resolve_level({"classification_level": 2, "details": {}}) == (2, [])
    assert resolve_level({}) == (0, [])
