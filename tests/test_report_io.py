import json

import pandas as pd

from targetkit import BuildRunner, TargetRegistry

from packbuild.framework.report_io import (
    REPORT_COLUMNS,
    append_build_index_entry,
    build_index_entry,
    format_report_table,
    report_to_frame,
    write_build_report,
)


class Layout:
    def __init__(self, entries):
        self._entries = entries

    def entries(self):
        return self._entries


def _failed_report(tmp_path):
    registry = TargetRegistry()
    registry.register("dist", lambda deps: ["a.py"])
    registry.register("exe", lambda deps: 1 / 0, ["dist"])
    registry.register("install", lambda deps: Layout({"x": "y"}), ["exe"])
    registry.register("docs", lambda deps: Layout({"index.html": "<html/>"}))
    return BuildRunner(registry).build(["docs", "install"], tmp_path / "out")


def test_report_frame_has_one_row_per_planned_target(tmp_path):
    report = _failed_report(tmp_path)

    frame = report_to_frame(report)

    assert list(frame.columns) == REPORT_COLUMNS
    assert list(frame["target"]) == ["docs", "dist", "exe", "install"]
    assert list(frame["status"]) == ["materialized", "evaluated", "failed", "skipped"]
    assert frame.loc[frame["target"] == "install", "blocked_by"].item() == "exe"
    assert frame.loc[frame["target"] == "docs", "outputs"].item() == 1


def test_format_report_table_lists_targets(tmp_path):
    table = format_report_table(_failed_report(tmp_path))

    assert "target" in table.splitlines()[0]
    for name in ("docs", "dist", "exe", "install"):
        assert name in table


def test_write_build_report_json_and_csv(tmp_path):
    report = _failed_report(tmp_path)
    log_dir = tmp_path / "logs"

    paths = write_build_report(report, str(log_dir), "b123")

    payload = json.loads((log_dir / "b123_build_report.json").read_text(encoding="utf-8"))
    assert paths["report_json"].endswith("b123_build_report.json")
    assert payload["build_id"] == "b123"
    assert payload["ok"] is False
    assert payload["order"] == ["docs", "dist", "exe", "install"]
    assert payload["error"]["type"] == "TargetEvaluationError"
    assert payload["error"]["target"] == "exe"
    by_name = {row["name"]: row for row in payload["targets"]}
    assert by_name["exe"]["error_type"] == "ZeroDivisionError"
    assert by_name["install"]["blocked_by"] == "exe"

    loaded = pd.read_csv(paths["report_csv"])
    assert list(loaded.columns) == REPORT_COLUMNS
    assert len(loaded) == 4


def test_build_index_is_append_only_jsonl(tmp_path):
    report = _failed_report(tmp_path)
    index_path = tmp_path / "logs" / "builds_index.jsonl"

    append_build_index_entry(str(index_path), build_index_entry(report, build_id="one"))
    append_build_index_entry(
        str(index_path), build_index_entry(report, build_id="two", artifacts={"oplog": "x.log"})
    )

    lines = index_path.read_text(encoding="utf-8").splitlines()
    entries = [json.loads(line) for line in lines]
    assert [entry["build_id"] for entry in entries] == ["one", "two"]
    assert entries[0]["schema_version"] == 1
    assert entries[0]["summary"] == {"materialized": 1, "evaluated": 1, "failed": 1, "skipped": 1}
    assert entries[0]["error"] == {"type": "TargetEvaluationError", "target": "exe"}
    assert entries[1]["artifacts"] == {"oplog": "x.log"}
