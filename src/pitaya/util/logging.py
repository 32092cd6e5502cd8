# -*- coding: utf-8 -*-
"""
Loguru sinks for a pitaya client session.

pitaya itself only ever calls `loguru.logger`; nothing is emitted until a sink
is attached, either by the application or with `start_client_log`.

Per-frame chatter (`*FRAME*`, repeated payload drops) is logged at TRACE. At that
level a busy ADC stream floods the log, so it can be filtered out with
`log_frames=False` while keeping the rest of the TRACE output.
"""

import os
import pathlib
import sys
import traceback

from loguru import logger

from .defaults import DEFAULT_LOGLEVEL, SINGLE_LINE_ERR_LOG, TEMP_DIR

_FRAME_MARKERS = ("*FRAME*", "still not keeping up")
_log_path = ""


def format_error_response():
    """Current traceback as text, on one line if SINGLE_LINE_ERR_LOG."""
    err_str = traceback.format_exc()
    if SINGLE_LINE_ERR_LOG:
        return "\t".join(line.strip() for line in err_str.splitlines())
    return err_str


def _without_frames(record) -> bool:
    return not any(marker in record["message"] for marker in _FRAME_MARKERS)


def start_client_log(
    log_to_file=True,
    log_to_stdout=False,
    log_path=None,
    clear_prev=True,
    log_level=DEFAULT_LOGLEVEL,
    log_frames=True,
):
    """Attach file and/or stderr sinks, replacing any existing ones.

    Parameters
    ----------
    log_to_file : bool
        Log to `log_path`.
    log_to_stdout : bool
        Log to stderr, colorized.
    log_path : str, optional
        Defaults to `log_default_path_client()`.
    clear_prev : bool
        Delete the previous log file first.
    log_level : str
        Loguru level name, e.g. "INFO" or "TRACE".
    log_frames : bool
        Keep the per-frame TRACE messages.
    """
    global _log_path
    if not log_path:
        log_path = log_default_path_client()
    else:
        log_path = os.path.abspath(log_path)

    if clear_prev:
        clear_log(log_path)

    # first remove (default) stderr output
    logger.remove()

    log_filter = None if log_frames else _without_frames
    if log_to_file:
        logger.add(
            log_path, level=log_level, filter=log_filter, enqueue=True, colorize=False
        )
        _log_path = log_path
    if log_to_stdout:
        logger.add(
            sys.stderr, level=log_level, filter=log_filter, enqueue=True, colorize=True
        )
    if log_to_file:
        logger.info("Client log started at {}", log_path)
    else:
        logger.info("Client log started.")


def log_default_path_client() -> str:
    return str(pathlib.Path.home().joinpath(".pitaya/client.log"))


def log_default_dir():
    return TEMP_DIR


def clear_log(log_path: str):
    """
    Clear the log file at the given path, if there is one.

    Arguments
    ---------
    log_path : str
        The path to the log file. Can get the default path with
        log_default_path_client().
    """
    if os.path.exists(log_path):
        try:
            os.remove(log_path)
        except PermissionError:
            logger.error(
                f"Could not clear log file {log_path}. Permission denied. Continuing."
            )


def shutdown_client_log():
    """Flush and remove every sink."""
    global _log_path
    try:
        logger.info("Closing down client log.")
        logger.complete()
        logger.remove()
    except Exception:
        logger.exception("Error shutting down client log - skipping.")
    _log_path = ""


def get_log_filename() -> str:
    """Path of the current file sink, or "" when logging to file is off."""
    return _log_path
