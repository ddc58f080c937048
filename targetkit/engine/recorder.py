from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Protocol


def utc_now_iso8601() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class TargetRecorder(Protocol):
    def on_target_start(self, logger: logging.Logger, name: str, **metrics: Any) -> None:
        ...

    def on_target_end(self, logger: logging.Logger, record: dict[str, Any]) -> None:
        ...

    def on_target_error(self, logger: logging.Logger, name: str, exc: BaseException) -> None:
        ...


class DefaultTargetRecorder:
    def on_target_start(self, logger: logging.Logger, name: str, **metrics: Any) -> None:
        tokens: list[str] = []
        phase = metrics.get("phase")
        if isinstance(phase, str) and phase.strip():
            tokens.append(f"phase={phase.strip()}")

        deps = metrics.get("dependencies")
        if isinstance(deps, (list, tuple)):
            tokens.append(f"deps={len(deps)}")

        source = metrics.get("source")
        if isinstance(source, str) and source.strip():
            tokens.append(f"source={source.strip()}")

        doc = metrics.get("doc")
        if isinstance(doc, str) and doc.strip():
            tokens.append(f"doc={json.dumps(doc.strip(), ensure_ascii=False)}")

        if tokens:
            logger.info("Target: %s (%s)", name, ", ".join(tokens))
        else:
            logger.info("Target: %s", name)

    def on_target_end(self, logger: logging.Logger, record: dict[str, Any]) -> None:
        name = record.get("name", "<unknown>")
        phase = record.get("phase") or "evaluate"
        duration = float(record.get("duration_seconds", 0.0) or 0.0)

        if phase == "materialize":
            outputs = record.get("outputs") or []
            logger.info(
                "Materialized %s (files=%d, seconds=%.3f)", name, len(outputs), duration
            )
            return

        caps = record.get("capabilities") or []
        caps_text = ",".join(caps) if caps else "none"
        logger.info(
            "Evaluated %s (result=%s, capabilities=%s, seconds=%.3f)",
            name,
            record.get("result_type", "<unknown>"),
            caps_text,
            duration,
        )

    def on_target_error(self, logger: logging.Logger, name: str, exc: BaseException) -> None:
        logger.error("Target failed: %s (%s)", name, exc)


class NullTargetRecorder:
    def on_target_start(self, logger: logging.Logger, name: str, **metrics: Any) -> None:
        return

    def on_target_end(self, logger: logging.Logger, record: dict[str, Any]) -> None:
        return

    def on_target_error(self, logger: logging.Logger, name: str, exc: BaseException) -> None:
        return


def validate_recorder(recorder: TargetRecorder) -> None:
    required = ("on_target_start", "on_target_end", "on_target_error")
    for name in required:
        method = getattr(recorder, name, None)
        if method is None or not callable(method):
            raise TypeError(f"Target recorder missing required method: {name}")
