from __future__ import annotations

import json
import os
from typing import Any, Mapping

import pandas as pd

from targetkit import BuildReport
from targetkit.engine.recorder import utc_now_iso8601

REPORT_COLUMNS: list[str] = [
    "target",
    "status",
    "requested",
    "evaluate_seconds",
    "materialize_seconds",
    "outputs",
    "blocked_by",
    "error",
]

BUILD_INDEX_SCHEMA_VERSION = 1


def report_to_frame(report: BuildReport) -> pd.DataFrame:
    """One row per planned target, in evaluation order."""

    rows: list[dict[str, Any]] = []
    for name in report.plan.order:
        outcome = report.targets[name]
        rows.append(
            {
                "target": name,
                "status": outcome.status,
                "requested": outcome.requested,
                "evaluate_seconds": round(outcome.evaluate_seconds, 3),
                "materialize_seconds": round(outcome.materialize_seconds, 3),
                "outputs": len(outcome.outputs),
                "blocked_by": outcome.blocked_by or "",
                "error": outcome.error or "",
            }
        )
    if not rows:
        return pd.DataFrame(columns=REPORT_COLUMNS)
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def format_report_table(report: BuildReport) -> str:
    frame = report_to_frame(report)
    if frame.empty:
        return "<no targets>"
    table = frame[["target", "status", "requested", "outputs", "blocked_by"]]
    return table.to_string(index=False)


def write_build_report(report: BuildReport, log_dir: str, build_id: str) -> dict[str, str]:
    os.makedirs(log_dir, exist_ok=True)
    json_path = os.path.join(log_dir, f"{build_id}_build_report.json")
    csv_path = os.path.join(log_dir, f"{build_id}_build_report.csv")

    payload = {"build_id": build_id, "created_at": utc_now_iso8601(), **report.to_dict()}
    with open(json_path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)
        handle.write("\n")

    report_to_frame(report).to_csv(csv_path, index=False, encoding="utf-8")
    return {"report_json": json_path, "report_csv": csv_path}


def append_build_index_entry(path: str, entry: Mapping[str, Any]) -> None:
    """
    Append a single JSON object to a JSONL build index file.

    The caller is responsible for building a schema_versioned entry object.
    """

    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(json.dumps(dict(entry), ensure_ascii=False))
        handle.write("\n")


def build_index_entry(
    report: BuildReport,
    *,
    build_id: str,
    artifacts: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "schema_version": BUILD_INDEX_SCHEMA_VERSION,
        "build_id": build_id,
        "created_at": utc_now_iso8601(),
        "ok": report.ok,
        "roots": list(report.plan.roots),
        "summary": report.summary(),
    }
    if report.output_root:
        entry["output_root"] = report.output_root
    if artifacts:
        entry["artifacts"] = dict(artifacts)
    if report.error is not None:
        entry["error"] = {"type": type(report.error).__name__, "target": report.error.target}
    return entry
