import logging
import re

from targetkit import MaterializationError, NoDefaultTargetsError, TargetEvaluationError

from packbuild.exit_codes import ExitCode
from packbuild.framework.logging_setup import (
    close_operational_logger,
    generate_build_id,
    setup_operational_logger,
)


def test_operational_logger_writes_utf8_file(tmp_path):
    logger, log_file = setup_operational_logger(str(tmp_path / "logs"), "b1", level=logging.ERROR)
    try:
        logger.debug("debug detail → file only")
        logger.info("Target: café")
    finally:
        close_operational_logger(logger)

    text = (tmp_path / "logs" / "b1_oplog.log").read_text(encoding="utf-8")
    assert log_file.endswith("b1_oplog.log")
    assert "Operational logging initialized for build b1" in text
    assert "debug detail → file only" in text
    assert "Target: café" in text
    assert " | INFO | " in text
    assert logger.handlers == []
    assert logger.propagate is False


def test_generate_build_id_shape():
    build_id = generate_build_id()

    assert re.fullmatch(r"\d{8}_\d{6}_[0-9a-f]{8}", build_id)
    assert generate_build_id() != build_id


def test_exit_codes_follow_error_taxonomy():
    assert ExitCode.from_exception(TargetEvaluationError("a", RuntimeError("x"))) == 13
    assert ExitCode.from_exception(MaterializationError("a", "p", OSError("x"))) == 13
    assert ExitCode.from_exception(NoDefaultTargetsError()) == 4
    assert ExitCode.from_exception(ValueError("bad config")) == 4
    assert ExitCode.from_exception(FileNotFoundError("x")) == 4
    assert ExitCode.from_exception(KeyError("x")) == 1
