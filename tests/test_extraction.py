# tests/test_extraction.py
import json
from datetime import datetime, timezone

from json_timeline_extractor.accessors import resolve_path
from json_timeline_extractor.extraction import (
    auto_detect,
    extract_array_data,
    extract_from_document,
    extract_from_files,
)
from json_timeline_extractor.models import ExtractionResult, ExtractionRule

UTC = timezone.utc

EVENTS_RULE = ExtractionRule(
    name="events",
    array_path="events",
    start_date_path="startDate",
    end_date_path="endDate",
    id_path="id",
    color="#1f77b4",
    enabled=True,
)


def _rule(**overrides) -> ExtractionRule:
    return EVENTS_RULE.with_changes(**overrides)


def _extract(document, rules=(EVENTS_RULE,), document_id="/data/doc.json") -> ExtractionResult:
    return extract_from_document(document_id, document, list(rules))


# ======================
# rule-driven extraction
# ======================
def test_single_event_scenario():
    doc = {"events": [{"id": "E1", "startDate": "2024-01-01", "endDate": "2024-01-05"}]}
    result = _extract(doc)

    assert result.warnings == []
    assert len(result.entities) == 1
    entity = result.entities[0]
    assert entity.id == "E1"
    assert entity.source_array == "events"
    assert entity.source_file == "doc.json"
    assert entity.start_date == datetime(2024, 1, 1, tzinfo=UTC)
    assert entity.end_date == datetime(2024, 1, 5, tzinfo=UTC)
    assert entity.original_data is doc["events"][0]


def test_missing_start_date_drops_item_with_warning():
    result = _extract({"events": [{"id": "E1", "endDate": "2024-01-05"}]})

    assert result.entities == []
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert warning.kind == "item"
    assert warning.source_array == "events"
    assert warning.index == 0
    assert "startDate" in warning.message


def test_bad_item_does_not_stop_siblings():
    doc = {
        "events": [
            {"id": "bad", "startDate": "someday"},
            "not an object",
            {"id": "good", "startDate": "2024-03-01"},
        ]
    }
    result = _extract(doc)

    assert [e.id for e in result.entities] == ["good"]
    assert [w.index for w in result.warnings] == [0, 1]


def test_end_date_falls_back_to_start():
    doc = {
        "events": [
            {"id": "a", "startDate": "2024-01-01"},
            {"id": "b", "startDate": "2024-01-02", "endDate": "garbage"},
        ]
    }
    result = _extract(doc)

    assert result.warnings == []
    for entity in result.entities:
        assert entity.end_date == entity.start_date


def test_id_fallbacks():
    doc = {
        "events": [
            {"startDate": "2024-01-01"},
            {"id": "", "startDate": "2024-01-01"},
            {"id": 0, "startDate": "2024-01-01"},
            {"id": 42, "startDate": "2024-01-01"},
        ]
    }
    ids = [e.id for e in _extract(doc).entities]
    assert ids == ["events-0", "events-1", "events-2", "42"]


def test_rule_without_id_path_synthesizes_ids():
    doc = {"events": [{"id": "E1", "startDate": "2024-01-01"}]}
    result = _extract(doc, rules=[_rule(id_path=None)])
    assert result.entities[0].id == "events-0"


def test_y_axis_value_is_untyped_and_optional():
    doc = {
        "events": [
            {"id": "a", "startDate": "2024-01-01", "priority": "high"},
            {"id": "b", "startDate": "2024-01-01", "priority": 3},
            {"id": "c", "startDate": "2024-01-01"},
        ]
    }
    result = _extract(doc, rules=[_rule(y_axis_path="priority")])

    assert [e.y_value for e in result.entities] == ["high", 3, None]
    assert result.warnings == []


def test_nested_paths_in_rules():
    doc = {
        "data": {
            "tasks": [
                {"info": {"key": "T-1"}, "window": {"from": 1704067200000, "to": "2024-01-03"}},
            ]
        }
    }
    rule = ExtractionRule("tasks", "data.tasks", "window.from", "window.to", "#2ca02c", id_path="info.key")
    entity = _extract(doc, rules=[rule]).entities[0]

    assert entity.id == "T-1"
    assert entity.start_date == datetime(2024, 1, 1, tzinfo=UTC)
    assert entity.end_date == datetime(2024, 1, 3, tzinfo=UTC)


def test_absent_array_is_skipped_silently():
    result = _extract({"other": [{"startDate": "2024-01-01"}], "events": {"not": "a list"}})
    assert result.entities == []
    assert result.warnings == []


def test_malformed_rule_is_isolated():
    doc = {"events": [{"id": "E1", "startDate": "2024-01-01"}]}
    broken = _rule(name="broken", array_path="events[")
    result = _extract(doc, rules=[broken, EVENTS_RULE])

    assert [e.id for e in result.entities] == ["E1"]
    assert len(result.warnings) == 1
    assert result.warnings[0].kind == "rule"
    assert result.warnings[0].source_array == "broken"


def test_rule_paths_may_use_any_key_text():
    doc = {
        "my events": [{"id": "E1", "Start Date": "2024-01-01", "End Date": "2024-01-02"}],
        "événements": [{"id": "E2", "début": "2024-02-01"}],
        "@meta": {"$items": [{"id": "E3", "at:time": "2024-03-01"}]},
    }
    rules = [
        ExtractionRule("spaced", "my events", "Start Date", "End Date", "#1f77b4", id_path="id"),
        ExtractionRule("accented", "événements", "début", "fin", "#ff7f0e", id_path="id"),
        ExtractionRule("symbols", "@meta.$items", "at:time", "at:time", "#2ca02c", id_path="id"),
    ]
    result = _extract(doc, rules=rules)

    assert result.warnings == []
    assert [(e.id, e.source_array) for e in result.entities] == [
        ("E1", "spaced"),
        ("E2", "accented"),
        ("E3", "symbols"),
    ]
    assert result.entities[0].end_date == datetime(2024, 1, 2, tzinfo=UTC)


def test_disabled_rules_are_ignored():
    doc = {"events": [{"id": "E1", "startDate": "2024-01-01"}], "other": [{"id": "O1", "startDate": "2024-01-01"}]}
    other = _rule(name="other", array_path="other", enabled=False)
    result = _extract(doc, rules=[EVENTS_RULE, other])
    assert [e.source_array for e in result.entities] == ["events"]


def test_root_array_rule():
    doc = [{"id": "R1", "startDate": "2024-01-01"}]
    result = _extract(doc, rules=[_rule(name="rows", array_path="(root)")])
    assert [(e.id, e.source_array) for e in result.entities] == [("R1", "rows")]


def test_extract_array_data_accumulates_into_given_result():
    result = ExtractionResult()
    entities = extract_array_data(
        [{"startDate": "2024-01-01"}, {"startDate": None}],
        EVENTS_RULE,
        "doc.json",
        result,
    )
    assert len(entities) == 1
    assert len(result.warnings) == 1


# ======================
# auto-detection
# ======================
def test_zero_enabled_rules_triggers_auto_detection():
    doc = {"timeline": [{"begin": "2024-02-01", "title": "Kickoff"}]}
    for rules in ([], [_rule(enabled=False)]):
        result = _extract(doc, rules=rules)
        assert len(result.entities) == 1
        entity = result.entities[0]
        assert entity.end_date == entity.start_date
        assert entity.id == "Kickoff"
        assert entity.source_array == "timeline"


def test_auto_detect_tags_nested_arrays_with_their_path():
    doc = {"project": {"milestones": [{"date": "2024-05-01"}, {"date": "2024-06-01"}]}}
    entities = auto_detect(doc, "plan.json")

    assert [e.source_array for e in entities] == ["project.milestones"] * 2
    assert [e.id for e in entities] == ["project.milestones-0", "project.milestones-1"]
    assert all(e.source_file == "plan.json" for e in entities)


def test_auto_detect_skips_non_timeline_arrays_and_items():
    doc = {
        "tags": ["a", "b"],
        "people": [{"name": "Ann"}],
        "empty": [],
        "events": [{"name": "x"}, {"start": "2024-01-01", "name": "y", "priority": 3}],
    }
    entities = auto_detect(doc, "doc.json")

    assert len(entities) == 1
    assert entities[0].id == "y"
    assert entities[0].y_value == 3


def test_auto_detect_root_array():
    entities = auto_detect([{"start": "2024-01-01", "end": "2024-01-02"}], "rows.json")
    assert [e.source_array for e in entities] == ["(root)"]
    assert entities[0].end_date == datetime(2024, 1, 2, tzinfo=UTC)


def test_auto_detect_searches_arrays_inside_array_elements():
    doc = {
        "projects": [
            {"name": "P", "phases": [{"start": "2024-01-01", "name": "Design"}]},
            {"name": "Q", "phases": [{"start": "2024-02-01", "name": "Build"}]},
        ]
    }
    entities = auto_detect(doc, "d.json")

    assert [(e.id, e.source_array) for e in entities] == [
        ("Design", "projects[0].phases"),
        ("Build", "projects[1].phases"),
    ]
    assert resolve_path(doc, entities[1].source_array) == doc["projects"][1]["phases"]


def test_auto_detect_searches_inside_root_array_elements():
    doc = [{"title": "Release", "milestones": [{"date": "2024-04-01", "name": "RC"}]}]
    entities = auto_detect(doc, "rows.json")
    assert [(e.id, e.source_array) for e in entities] == [("RC", "milestones")]


def test_auto_detect_on_scalars_returns_nothing():
    assert auto_detect("2024-01-01", "x.json") == []
    assert auto_detect(None, "x.json") == []


# ======================
# multiple files
# ======================
def test_extract_from_files_isolates_unreadable_documents(tmp_path):
    good = tmp_path / "good.json"
    good.write_text(json.dumps({"events": [{"id": "E1", "startDate": "2024-01-01"}]}), encoding="utf-8")
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")

    result = extract_from_files([str(bad), str(good), str(tmp_path / "missing.json")], [EVENTS_RULE])

    assert [(e.id, e.source_file) for e in result.entities] == [("E1", "good.json")]
    assert [w.kind for w in result.warnings] == ["file", "file"]
    assert result.warnings[0].source_file == "bad.json"


def test_extract_from_files_isolates_undecodable_documents(tmp_path):
    good = tmp_path / "good.json"
    good.write_text(json.dumps({"events": [{"id": "E1", "startDate": "2024-01-01"}]}), encoding="utf-8")
    latin = tmp_path / "latin.json"
    latin.write_bytes(b'{"events": [{"id": "caf\xe9"}]}\xff\xfe')

    result = extract_from_files([str(latin), str(good)], [EVENTS_RULE])

    assert [e.id for e in result.entities] == ["E1"]
    assert [(w.kind, w.source_file) for w in result.warnings] == [("file", "latin.json")]
    assert "not valid UTF-8" in result.warnings[0].message
