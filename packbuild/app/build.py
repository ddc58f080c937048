from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from targetkit import BuildReport, BuildRunner, EvaluationPlan, TargetRegistry, resolve

from packbuild.framework.config import BuildConfig
from packbuild.framework.loader import TargetLoadError, load_targets
from packbuild.framework.logging_setup import (
    close_operational_logger,
    generate_build_id,
    setup_operational_logger,
)
from packbuild.framework.report_io import (
    append_build_index_entry,
    build_index_entry,
    write_build_report,
)


@dataclass
class BuildSession:
    cfg: BuildConfig
    registry: TargetRegistry
    warnings: list[str] = field(default_factory=list)


@dataclass
class BuildOutcome:
    build_id: str
    report: BuildReport
    log_file: str
    artifacts: dict[str, str] = field(default_factory=dict)


def _log_config_meta(logger: logging.Logger, config_meta: Mapping[str, Any] | None) -> None:
    if not config_meta:
        return
    mode = config_meta.get("mode")
    paths = config_meta.get("paths") or []
    env_var = config_meta.get("env_var") or "PACKBUILD_CONFIG"
    if mode in {"env", "explicit"} and paths:
        label = f"env {env_var}" if mode == "env" else "explicit path"
        logger.info("Loaded config from %s=%s", label, paths[0])
    elif paths:
        base = paths[0]
        local = paths[1] if len(paths) > 1 else None
        if local:
            logger.info("Loaded config base=%s local=%s", base, local)
        else:
            logger.info("Loaded config base=%s", base)
    else:
        logger.info("No config file found; using defaults")


def open_session(
    cfg_dict: Mapping[str, Any],
    *,
    config_meta: Mapping[str, Any] | None = None,
    targets_file: str | None = None,
    output_root: str | None = None,
) -> BuildSession:
    """Parse configuration and load the targets file into a fresh registry."""

    base_dir = (config_meta or {}).get("base_dir")
    overrides: dict[str, Any] = {}
    if targets_file:
        overrides["targets_file"] = os.path.abspath(targets_file)
    if output_root:
        overrides["output_root"] = os.path.abspath(output_root)

    merged: dict[str, Any] = dict(cfg_dict)
    if overrides:
        build_section = dict(merged.get("build") or {})
        build_section.update(overrides)
        merged["build"] = build_section

    cfg, warnings = BuildConfig.from_dict(merged, base_dir=base_dir)
    if cfg.targets_file is None:
        raise TargetLoadError(
            "<unset>", "no targets file configured (set build.targets_file or pass --targets-file)"
        )

    registry = load_targets(cfg.targets_file, cfg=cfg)
    return BuildSession(cfg=cfg, registry=registry, warnings=warnings)


def requested_targets(session: BuildSession, requested: Sequence[str]) -> tuple[str, ...]:
    names = tuple(name for name in requested if name and name.strip())
    if names:
        return names
    return session.cfg.default_targets


def plan_targets(session: BuildSession, requested: Sequence[str] = ()) -> EvaluationPlan:
    return resolve(session.registry, requested_targets(session, requested))


def run_build(
    session: BuildSession,
    requested: Sequence[str] = (),
    *,
    build_id: str | None = None,
    config_meta: Mapping[str, Any] | None = None,
) -> BuildOutcome:
    cfg = session.cfg
    build_id = build_id or generate_build_id()
    logger, log_file = setup_operational_logger(cfg.log_dir, build_id, level=cfg.log_level_value)
    try:
        _log_config_meta(logger, config_meta)
        for warning in session.warnings:
            logger.warning("%s", warning)
        logger.info("Targets file: %s (%d targets)", cfg.targets_file, len(session.registry))

        runner = BuildRunner(session.registry, logger=logger)
        report = runner.build(requested_targets(session, requested), cfg.output_root)

        artifacts: dict[str, str] = {"oplog": log_file}
        if cfg.write_report:
            artifacts.update(write_build_report(report, cfg.log_dir, build_id))
            append_build_index_entry(
                os.path.join(cfg.log_dir, "builds_index.jsonl"),
                build_index_entry(report, build_id=build_id, artifacts=artifacts),
            )
            logger.info("Wrote build report to %s", artifacts["report_json"])

        return BuildOutcome(build_id=build_id, report=report, log_file=log_file, artifacts=artifacts)
    finally:
        close_operational_logger(logger)


def run_target(
    session: BuildSession,
    name: str,
    args: Sequence[str] = (),
    *,
    build_id: str | None = None,
) -> int:
    cfg = session.cfg
    build_id = build_id or generate_build_id()
    logger, _log_file = setup_operational_logger(cfg.log_dir, build_id, level=cfg.log_level_value)
    try:
        runner = BuildRunner(session.registry, logger=logger)
        return runner.run(name, args)
    finally:
        close_operational_logger(logger)


def evaluate_targets(
    session: BuildSession,
    requested: Sequence[str] = (),
    *,
    build_id: str | None = None,
) -> BuildReport:
    """Evaluate the plan without materializing anything."""

    cfg = session.cfg
    build_id = build_id or generate_build_id()
    logger, _log_file = setup_operational_logger(cfg.log_dir, build_id, level=cfg.log_level_value)
    try:
        runner = BuildRunner(session.registry, logger=logger)
        return runner.evaluate(requested_targets(session, requested))
    finally:
        close_operational_logger(logger)
