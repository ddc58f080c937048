from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence

from targetkit import TargetKitError

from packbuild.exit_codes import ExitCode


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=None, help="Path to a packbuild YAML config")
    parser.add_argument(
        "--targets-file",
        default=None,
        help="Python file defining register_targets(registry) (overrides build.targets_file)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="packbuild", add_help=True)
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Evaluate targets and materialize their artifacts")
    _add_config_args(build)
    build.add_argument("targets", nargs="*", help="Targets to build (default: default targets)")
    build.add_argument("--output-root", default=None, help="Directory receiving <target>/ outputs")
    build.add_argument("--json", action="store_true", help="Print the build report as JSON")

    run = sub.add_parser("run", help="Evaluate a target and run its result as a program")
    _add_config_args(run)
    run.add_argument("target")
    run.add_argument("args", nargs=argparse.REMAINDER)

    list_targets = sub.add_parser("list-targets", help="List registered targets")
    _add_config_args(list_targets)

    plan = sub.add_parser("plan", help="Print the resolved evaluation order")
    _add_config_args(plan)
    plan.add_argument("targets", nargs="*")
    plan.add_argument(
        "--evaluate",
        action="store_true",
        help="Also evaluate the plan (nothing is materialized) and print per-target status",
    )

    return parser


def _open_session(args: argparse.Namespace):
    from packbuild.app.build import open_session
    from packbuild.foundation.config_io import load_config

    cfg_dict, config_meta = load_config(config_path=args.config, allow_missing=True)
    session = open_session(
        cfg_dict,
        config_meta=config_meta,
        targets_file=args.targets_file,
        output_root=getattr(args, "output_root", None),
    )
    return session, config_meta


def _cmd_build(args: argparse.Namespace) -> int:
    from packbuild.app.build import run_build
    from packbuild.framework.report_io import format_report_table

    session, config_meta = _open_session(args)
    outcome = run_build(session, args.targets, config_meta=config_meta)
    report = outcome.report

    if args.json:
        print(json.dumps({"build_id": outcome.build_id, **report.to_dict()}, indent=2))
    else:
        print(format_report_table(report))
        status = "OK" if report.ok else "FAILED"
        print(f"\nBuild {outcome.build_id}: {status}")
        if report.error is not None:
            print(f"error: {report.error}", file=sys.stderr)

    if report.ok:
        return int(ExitCode.SUCCESS)
    return int(ExitCode.from_exception(report.error) if report.error else ExitCode.EXECUTION_ERROR)


def _cmd_run(args: argparse.Namespace) -> int:
    from packbuild.app.build import run_target

    session, _config_meta = _open_session(args)
    forwarded = list(args.args)
    if forwarded and forwarded[0] == "--":
        forwarded = forwarded[1:]
    return run_target(session, args.target, forwarded)


def _cmd_list_targets(args: argparse.Namespace) -> int:
    session, _config_meta = _open_session(args)
    for row in session.registry.describe():
        marker = "*" if row["default"] else " "
        deps = ", ".join(row["dependencies"]) or "-"
        line = f"{marker} {row['name']}  (deps: {deps})"
        if row["doc"]:
            line += f"  {row['doc']}"
        print(line)
    return int(ExitCode.SUCCESS)


def _cmd_plan(args: argparse.Namespace) -> int:
    from packbuild.app.build import evaluate_targets, plan_targets
    from packbuild.framework.report_io import format_report_table

    session, _config_meta = _open_session(args)
    if args.evaluate:
        report = evaluate_targets(session, args.targets)
        print(format_report_table(report))
        if report.error is not None:
            print(f"error: {report.error}", file=sys.stderr)
            return int(ExitCode.from_exception(report.error))
        return int(ExitCode.SUCCESS)

    plan = plan_targets(session, args.targets)
    for idx, name in enumerate(plan.order, start=1):
        suffix = "  (requested)" if plan.is_root(name) else ""
        print(f"{idx:>3}. {name}{suffix}")
    return int(ExitCode.SUCCESS)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    handlers = {
        "build": _cmd_build,
        "run": _cmd_run,
        "list-targets": _cmd_list_targets,
        "plan": _cmd_plan,
    }
    handler = handlers.get(args.command)
    if handler is None:
        raise AssertionError(f"Unhandled command: {args.command}")

    try:
        return handler(args)
    except (TargetKitError, ValueError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return int(ExitCode.from_exception(exc))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
