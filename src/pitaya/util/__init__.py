# -*- coding: utf-8 -*-
"""
Utility functions and constants for pitaya.

- Logging configuration and management
- Connection defaults

Examples
--------
Logging a session to stderr:
```python
from pitaya.util import start_client_log
start_client_log(log_to_file=False, log_to_stdout=True, log_level="DEBUG")
```

See Also
--------
pitaya.util.logging : Logging configuration
pitaya.util.defaults : Default constants
"""

from .defaults import (
    DEFAULT_CLOSE_CAUSE,
    DEFAULT_HOST_ADDR,
    DEFAULT_HTTP_PORT,
    DEFAULT_LOGLEVEL,
    DEFAULT_QUEUE_SIZE,
    DEFAULT_TIMEOUT,
    DEFAULT_WS_PORT,
    SINGLE_LINE_ERR_LOG,
    TEST_LOGLEVEL,
)
from .logging import (
    clear_log,
    format_error_response,
    get_log_filename,
    log_default_dir,
    log_default_path_client,
    shutdown_client_log,
    start_client_log,
)

__all__ = [
    "DEFAULT_CLOSE_CAUSE",
    "DEFAULT_HOST_ADDR",
    "DEFAULT_HTTP_PORT",
    "DEFAULT_LOGLEVEL",
    "DEFAULT_QUEUE_SIZE",
    "DEFAULT_TIMEOUT",
    "DEFAULT_WS_PORT",
    "SINGLE_LINE_ERR_LOG",
    "TEST_LOGLEVEL",
    "clear_log",
    "format_error_response",
    "get_log_filename",
    "log_default_dir",
    "log_default_path_client",
    "shutdown_client_log",
    "start_client_log",
]
