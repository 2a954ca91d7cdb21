"""
End-to-end transform tests: multi-parent expansion, skip-and-continue,
determinism, dependency links and batch-level warnings.

Run: python -m pytest test_pipeline.py -v
"""
import copy
from datetime import datetime, timezone

import pytest

from gantt_core.graph import TaskGraph
from gantt_core.pipeline import transform
from gantt_core.render import to_widget_payload, to_widget_rows
from gantt_core.validation import ConfigError, load_config

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)

RAW_CONFIG = {
    "fieldMappings": {
        "id": "id",
        "text": "title",
        "start": "start",
        "end": "end",
        "progress": "progress",
        "parent": "parent",
        "parents": "parents",
        "dependency": "after",
    },
    "defaultDuration": 3,
}


def test_multi_parent_expansion():
    print("\n── Test: Multi-Parent Expansion ──")
    records = [
        {"id": "proj-a", "title": "Project A", "start": "2024-01-01", "end": "2024-02-01"},
        {"id": "proj-b", "title": "Project B", "start": "2024-01-01", "end": "2024-02-01"},
        {"id": "shared.md", "title": "Shared", "start": "2024-01-05", "end": "2024-01-08",
         "parents": ["proj-a", "proj-b"]},
    ]
    result = transform(records, RAW_CONFIG, now=NOW)

    shared = [t for t in result.tasks if t.note_id == "shared.md"]
    assert len(shared) == 2
    primary, virtual = shared
    assert (primary.id, primary.parent, primary.kind) == ("shared.md", "proj-a", "primary")
    assert (virtual.id, virtual.parent, virtual.kind) == ("shared.md::v1", "proj-b", "virtual")
    assert virtual.sequence == 1
    assert virtual.start_date == primary.start_date == "2024-01-05"
    assert virtual.text == "Shared"
    # The duplicate follows its origin directly
    assert [t.id for t in result.tasks] == ["proj-a", "proj-b", "shared.md", "shared.md::v1"]
    print("  ✓ One row per parent, shared note id")


def test_unresolved_and_repeated_parents_make_no_duplicate():
    records = [
        {"id": "a", "title": "A"},
        {"id": "b", "title": "B"},
        {"id": "c", "title": "C", "parents": ["a", "missing", "a", "b", "c"]},
    ]
    result = transform(records, RAW_CONFIG, now=NOW)
    rows = [(t.id, t.parent) for t in result.tasks if t.note_id == "c"]
    # "b" is the fourth entry of the list
    assert rows == [("c", "a"), ("c::v3", "b")]


def test_singular_parent_with_parents_list():
    records = [
        {"id": "p", "title": "P"},
        {"id": "a", "title": "A"},
        {"id": "b", "title": "B"},
        {"id": "x", "title": "X", "parent": "p", "parents": ["a", "b"]},
    ]
    result = transform(records, RAW_CONFIG, now=NOW)
    rows = [(t.id, t.parent) for t in result.tasks if t.note_id == "x"]
    assert rows[0] == ("x", "p")
    assert ("x::v1", "b") in rows


def test_skip_and_continue():
    print("\n── Test: Skip and Continue ──")
    records = [
        {"id": "one", "title": "One", "start": "2024-01-01", "end": "2024-01-02"},
        {"id": "   ", "title": "Blank id", "start": "2024-01-01", "end": "2024-01-02"},
        {"id": "three", "title": "Three", "start": "2024-01-01", "end": "2024-01-02"},
    ]
    result = transform(records, RAW_CONFIG, now=NOW)
    assert [t.id for t in result.tasks] == ["one", "three"]
    assert len(result.warnings) == 1
    assert result.warnings[0].code == "missing_id"
    assert result.warnings[0].record_index == 1
    print("  ✓ Bad record skipped with one warning")


def test_dates_at_calendar_edges_do_not_stop_the_batch():
    print("\n── Test: Calendar Edges ──")
    records = [
        {"id": "ok", "title": "OK", "start": "2024-01-01", "end": "2024-01-02"},
        {"id": "late", "title": "Late", "start": "9999-12-30"},
        {"id": "early", "title": "Early", "end": "0001-01-02"},
        {"id": "after", "title": "After"},
    ]
    result = transform(records, RAW_CONFIG, now=NOW)
    by_id = {t.id: t for t in result.tasks}
    assert list(by_id) == ["ok", "late", "early", "after"]

    late = by_id["late"]
    assert (late.start_date, late.end_date) == ("9999-12-30", None)
    assert not late.inferred_end
    early = by_id["early"]
    assert (early.start_date, early.end_date) == (None, "0001-01-02")
    assert not early.inferred_start

    assert result.warning_messages() == [
        "Task late missing end date",
        "Task early missing start date",
    ]
    print("  ✓ Out-of-range inference leaves the date absent")


def test_numbers_too_large_for_float_are_absent():
    huge = 10**400
    records = [
        {"id": "a", "title": "A", "start": huge, "end": "2024-01-10", "progress": huge},
        {"id": "b", "title": "B", "start": "2024-01-01", "end": "2024-01-02"},
    ]
    result = transform(records, RAW_CONFIG, now=NOW)
    a, b = result.tasks
    assert (a.start_date, a.inferred_start) == ("2024-01-07", True)
    assert a.progress is None
    assert b.id == "b"


def test_today_near_calendar_end():
    result = transform([{"id": "a", "title": "A"}], RAW_CONFIG,
                       now=datetime(9999, 12, 31, tzinfo=timezone.utc))
    task = result.tasks[0]
    assert (task.start_date, task.end_date) == ("9999-12-31", None)
    assert task.inferred_start and not task.inferred_end


def test_transform_is_deterministic():
    records = [
        {"id": "a", "title": "A"},
        {"id": "b", "title": "B", "parents": ["a", "c"], "after": "a"},
        {"id": "c", "title": "C", "start": "1/15/2024", "progress": 40},
    ]
    first = transform(records, RAW_CONFIG, now=NOW)
    second = transform(records, RAW_CONFIG, now=NOW)
    assert first.model_dump_json() == second.model_dump_json()
    assert to_widget_payload(first) == to_widget_payload(second)


def test_inputs_are_not_mutated():
    records = [{"id": "a", "title": "A"}, {"id": "b", "title": "B", "parents": ["a", "a"]}]
    raw_config = copy.deepcopy(RAW_CONFIG)
    records_before = copy.deepcopy(records)
    transform(records, raw_config, now=NOW)
    assert records == records_before
    assert raw_config == RAW_CONFIG


def test_today_is_read_once_from_now():
    result = transform([{"id": "a", "title": "A"}], RAW_CONFIG, now=NOW)
    task = result.tasks[0]
    assert (task.start_date, task.end_date) == ("2024-01-01", "2024-01-04")
    assert task.inferred_start and task.inferred_end


def test_dependency_links():
    print("\n── Test: Dependency Links ──")
    records = [
        {"id": "design", "title": "Design"},
        {"id": "build", "title": "Build", "after": "[[design]]"},
        {"id": "ship", "title": "Ship", "after": "design, build, build, nowhere, ship"},
        {"id": "docs", "title": "Docs", "after": ["Build"]},
    ]
    result = transform(records, RAW_CONFIG, now=NOW)
    pairs = [(l.source, l.target) for l in result.links]
    assert pairs == [
        ("design", "build"),
        ("design", "ship"),
        ("build", "ship"),
        ("build", "docs"),
    ]
    assert all(l.type == "0" for l in result.links)
    assert result.links[0].id == "design->build"
    print("  ✓ Finish-to-start links, self and dangling targets dropped")


def test_no_dependency_mapping_means_no_links():
    raw = {"fieldMappings": {"id": "id", "text": "title"}}
    result = transform([{"id": "a", "title": "A", "after": "b"}, {"id": "b", "title": "B"}], raw, now=NOW)
    assert result.links == []


def test_duplicate_ids_are_kept_and_flagged():
    records = [{"id": "a", "title": "First"}, {"id": "a", "title": "Second"}]
    result = transform(records, RAW_CONFIG, now=NOW)
    assert [t.text for t in result.tasks] == ["First", "Second"]
    assert [w.code for w in result.warnings] == ["duplicate_id"]


def test_parent_cycle_warning():
    records = [
        {"id": "a", "title": "A", "parent": "b"},
        {"id": "b", "title": "B", "parent": "a"},
    ]
    result = transform(records, RAW_CONFIG, now=NOW)
    cycles = [w for w in result.warnings if w.code == "parent_cycle"]
    assert len(cycles) == 1
    assert "a -> b" in cycles[0].message


def test_parent_cycle_message_follows_the_chain():
    records = [
        {"id": "a", "title": "A", "parent": "c"},
        {"id": "b", "title": "B", "parent": "a"},
        {"id": "c", "title": "C", "parent": "b"},
    ]
    result = transform(records, RAW_CONFIG, now=NOW)
    cycles = [w.message for w in result.warnings if w.code == "parent_cycle"]
    assert cycles == ["Parent cycle between tasks: a -> c -> b"]


def test_ambiguous_name_warning_only_when_used():
    records = [
        {"id": "x/plan", "title": "Plan"},
        {"id": "y/plan", "title": "Plan"},
    ]
    assert transform(records, RAW_CONFIG, now=NOW).warnings == []

    records.append({"id": "task", "title": "Task", "parent": "Plan"})
    result = transform(records, RAW_CONFIG, now=NOW)
    assert [w.code for w in result.warnings] == ["ambiguous_name"]
    assert result.tasks[-1].parent == "x/plan"


def test_missing_date_warnings_follow_config():
    raw = dict(RAW_CONFIG, missingStartBehavior="hide", missingEndBehavior="show")
    result = transform([{"id": "a", "title": "A"}], raw, now=NOW)
    assert result.warning_messages() == ["Task a missing both start and end dates"]

    raw["showMissingDates"] = False
    assert transform([{"id": "a", "title": "A"}], raw, now=NOW).warnings == []


def test_invalid_config_raises():
    with pytest.raises(ConfigError) as exc:
        transform([], {"fieldMappings": {"text": "title"}})
    assert "fieldMappings.id is required" in exc.value.errors


def test_accepts_loaded_config():
    config = load_config(RAW_CONFIG)
    result = transform([{"id": "a", "title": "A", "start": "2024-01-01"}], config, now=NOW)
    assert result.tasks[0].end_date == "2024-01-04"


def test_widget_rows():
    records = [
        {"id": "p", "title": "P", "start": "2024-01-01", "end": "2024-01-10"},
        {"id": "q", "title": "Q", "start": "2024-01-01", "end": "2024-01-10"},
        {"id": "c", "title": "C", "start": "2024-01-02", "parents": ["p", "q"], "progress": 50},
    ]
    config = load_config(RAW_CONFIG)
    result = transform(records, config, now=NOW)
    rows = to_widget_rows(result, config)

    assert rows[0] == {"id": "p", "text": "P", "note_id": "p", "open": True,
                       "start_date": "2024-01-01", "end_date": "2024-01-10"}
    child, dup = rows[2], rows[3]
    assert child["parent"] == "p" and child["progress"] == 0.5
    assert child["inferred_end"] is True and child["inferred_start"] is False
    assert dup["id"] == "c::v1" and dup["virtual"] is True and dup["parent"] == "q"

    quiet = load_config(dict(RAW_CONFIG, showMissingDateIndicators=False))
    assert "inferred_end" not in to_widget_rows(result, quiet)[2]


def test_task_graph():
    records = [
        {"id": "root", "title": "Root"},
        {"id": "a", "title": "A", "parent": "root"},
        {"id": "b", "title": "B", "parents": ["root", "a"], "after": "a"},
    ]
    result = transform(records, RAW_CONFIG, now=NOW)
    graph = TaskGraph()
    graph.add_tasks(result.tasks)
    graph.add_links(result.links)

    assert graph.roots() == ["root"]
    assert sorted(graph.children_of("root")) == ["a", "b"]
    assert graph.children_of("a") == ["b::v1"]
    assert [row["id"] for row in graph.tasks_for_note("b")] == ["b", "b::v1"]
    assert graph.find_parent_cycles() == []
    assert '"root"' in graph.to_json()


if __name__ == "__main__":
    test_multi_parent_expansion()
    test_skip_and_continue()
    test_dependency_links()
    print("\n✅ Pipeline tests passed")
