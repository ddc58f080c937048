from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def generate_build_id() -> str:
    unique_id = uuid.uuid4().hex[:8]
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{timestamp}_{unique_id}"


def setup_operational_logger(
    log_dir: str,
    build_id: str,
    *,
    level: int = logging.INFO,
) -> tuple[logging.Logger, str]:
    """
    Configure a logger that writes an operational log for one build.
    Logs go to both stderr and a UTF-8 file under the provided directory.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, f"{build_id}_oplog.log")

    logger = logging.getLogger(f"packbuild.{build_id}")
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)
    logger.propagate = False

    logger.info("Operational logging initialized for build %s", build_id)
    logger.debug("Operational log file: %s", log_file)

    return logger, log_file


def close_operational_logger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
