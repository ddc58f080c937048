from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_bool(value: Any, path: str) -> bool:
    """
    Strict boolean parsing to avoid bool('false') footguns.

    Accepts:
      - True/False
      - 0/1 (ints)
      - strings: true/false/1/0/yes/no (case-insensitive, surrounding whitespace ignored)

    Raises:
      ValueError for anything else, with the provided config key path.
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"Invalid boolean for {path}: {value!r}")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False
        raise ValueError(f"Invalid boolean for {path}: {value!r}")

    raise ValueError(f"Invalid boolean for {path}: {value!r}")


def parse_string_list(value: Any, path: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        raise ValueError(f"Invalid config type for {path}: expected list of strings")
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Invalid config type for {path}: expected list of strings")
    items: list[str] = []
    for idx, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            raise ValueError(f"Invalid config value for {path}[{idx}]: expected non-empty string")
        items.append(item.strip())
    return tuple(items)


@dataclass(frozen=True)
class BuildConfig:
    targets_file: str | None
    output_root: str
    default_targets: tuple[str, ...]

    log_dir: str
    log_level: str
    write_report: bool

    base_dir: str

    @property
    def log_level_value(self) -> int:
        return int(getattr(logging, self.log_level))

    @staticmethod
    def from_dict(
        cfg: Mapping[str, Any],
        *,
        base_dir: str | None = None,
    ) -> tuple["BuildConfig", list[str]]:
        """
        Parse and validate configuration, returning (BuildConfig, warnings).

        Relative paths are resolved against `base_dir` (the repo root or the
        directory of an explicitly given config file).

        Raises:
            ValueError: if keys are invalid.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        warnings: list[str] = []
        root_dir = os.path.abspath(base_dir or os.getcwd())

        strict_unknown_keys = False
        if "strict" in cfg:
            strict_unknown_keys = parse_bool(cfg.get("strict"), "strict")

        schema: Mapping[str, Any] = {
            "strict": None,
            "build": {
                "targets_file": None,
                "output_root": None,
                "default_targets": None,
            },
            "logging": {
                "log_dir": None,
                "level": None,
                "write_report": None,
            },
        }

        def collect_unknown_keys(mapping: Any, subschema: Mapping[str, Any], *, prefix: str) -> list[str]:
            if not isinstance(mapping, Mapping):
                return []
            unknown: list[str] = []
            for key, value in mapping.items():
                key_path = f"{prefix}.{key}" if prefix else str(key)
                if key not in subschema:
                    unknown.append(key_path)
                    continue
                nested = subschema.get(key)
                if isinstance(nested, Mapping):
                    unknown.extend(collect_unknown_keys(value, nested, prefix=key_path))
            return unknown

        unknown_keys = sorted(set(collect_unknown_keys(cfg, schema, prefix="")))
        if unknown_keys:
            if strict_unknown_keys:
                raise ValueError("Unknown config keys: " + ", ".join(unknown_keys))
            warnings.extend(f"Unknown config key: {key}" for key in unknown_keys)

        def get_mapping(path: str) -> Mapping[str, Any]:
            cur: Any = cfg.get(path)
            if cur is None:
                return {}
            if not isinstance(cur, Mapping):
                raise ValueError(f"Invalid config type for {path}: expected mapping")
            return cur

        def optional_str(section: Mapping[str, Any], key: str, path: str) -> str | None:
            cur = section.get(key)
            if cur is None:
                return None
            if not isinstance(cur, str):
                raise ValueError(f"Invalid config type for {path}: expected string")
            if not cur.strip():
                return None
            return cur.strip()

        def normalize_path(value: str) -> str:
            expanded = os.path.expandvars(os.path.expanduser(value.strip()))
            if not os.path.isabs(expanded):
                expanded = os.path.join(root_dir, expanded)
            return os.path.abspath(expanded)

        build_cfg = get_mapping("build")
        logging_cfg = get_mapping("logging")

        raw_targets_file = optional_str(build_cfg, "targets_file", "build.targets_file")
        targets_file = normalize_path(raw_targets_file) if raw_targets_file else None

        output_root = normalize_path(
            optional_str(build_cfg, "output_root", "build.output_root") or os.path.join("build", "out")
        )
        default_targets = parse_string_list(build_cfg.get("default_targets"), "build.default_targets")

        log_dir = normalize_path(
            optional_str(logging_cfg, "log_dir", "logging.log_dir") or os.path.join("build", "logs")
        )

        raw_level = optional_str(logging_cfg, "level", "logging.level") or "INFO"
        log_level = raw_level.upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(
                f"Unknown logging.level: {raw_level} (expected one of: {', '.join(LOG_LEVELS)})"
            )

        write_report = True
        if "write_report" in logging_cfg:
            write_report = parse_bool(logging_cfg.get("write_report"), "logging.write_report")

        return (
            BuildConfig(
                targets_file=targets_file,
                output_root=output_root,
                default_targets=default_targets,
                log_dir=log_dir,
                log_level=log_level,
                write_report=write_report,
                base_dir=root_dir,
            ),
            warnings,
        )
