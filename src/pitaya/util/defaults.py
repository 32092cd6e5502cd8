# -*- coding: utf-8 -*-

import tempfile

DEFAULT_HOST_ADDR = "127.0.0.1"
DEFAULT_HTTP_PORT = 80
DEFAULT_WS_PORT = 9002
DEFAULT_TIMEOUT = 5  # seconds, only used for the start request
DEFAULT_QUEUE_SIZE = 64  # frames buffered per subscriber before dropping oldest
DEFAULT_LOGLEVEL = "INFO"
TEST_LOGLEVEL = "TRACE"
TEMP_DIR = tempfile.gettempdir()
SINGLE_LINE_ERR_LOG = False  # reformat tracebacks into a single line for event details

DEFAULT_CLOSE_CAUSE = "connection was closed by calling close()"
