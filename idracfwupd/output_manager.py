# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Logging utilities for idracfwupd.

Every module logs to its own file inside a per-run log directory. When
console output is requested a Rich handler streams the same records to
the terminal.

Usage:
    >>> logger = setup_logging("update_orchestrator", console_output=True)
    >>> logger.info("Submitting firmware update")
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Keep urllib3 connection chatter out of the run logs
logging.getLogger("urllib3").setLevel(logging.WARNING)


class _LoggingState:
    """Internal class to encapsulate logging state without global variables."""

    def __init__(self):
        self.current_log_dir = None
        self.custom_log_dir = None
        self.console_output = False
        self.level = logging.INFO
        self.lock = threading.Lock()


# Module-level instance to store logging state
_logging_state = _LoggingState()


def set_log_directory(log_dir_path: str) -> None:
    """
    Set a custom log directory path.
    This function should be called before any logging operations begin.

    Args:
        log_dir_path (str): Path to the custom log directory
    """
    with _logging_state.lock:
        _logging_state.custom_log_dir = Path(log_dir_path)
        # Reset current log dir to force recreation with new base
        _logging_state.current_log_dir = None


def configure_console(console_output: bool, verbose: bool = False) -> None:
    """
    Set the defaults used by loggers created after this call.

    Args:
        console_output (bool): Stream log records to the terminal
        verbose (bool): Log at DEBUG instead of INFO
    """
    with _logging_state.lock:
        _logging_state.console_output = console_output
        _logging_state.level = logging.DEBUG if verbose else logging.INFO


def get_log_directory() -> Path:
    """
    Get or create the log directory for the current run.
    All modules share the same directory for a given run.

    Returns:
        Path: Path to the current log directory
    """
    with _logging_state.lock:
        if _logging_state.current_log_dir is None:
            if _logging_state.custom_log_dir is not None:
                base_log_dir = _logging_state.custom_log_dir
            else:
                base_log_dir = Path("logs")

            base_log_dir.mkdir(parents=True, exist_ok=True)

            if _logging_state.custom_log_dir is None:
                # Create timestamped directory for this run
                timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                _logging_state.current_log_dir = base_log_dir / f"logs_{timestamp}"
            else:
                _logging_state.current_log_dir = base_log_dir
            _logging_state.current_log_dir.mkdir(exist_ok=True)

    return _logging_state.current_log_dir


def setup_logging(module_name: str, console_output: Optional[bool] = None) -> logging.Logger:
    """
    Set up file-based logging for a module, optionally with console output.

    Handlers are only attached the first time a module name is seen, so
    calling this repeatedly returns the same configured logger.

    Args:
        module_name (str): Name of the module (e.g., 'update_orchestrator')
        console_output (Optional[bool]): Add a Rich console handler. Defaults to
            the value set with configure_console().

    Returns:
        logging.Logger: Configured logger instance
    """
    log_dir = get_log_directory()
    logger = logging.getLogger(f"idracfwupd.{module_name}")

    with _logging_state.lock:
        if console_output is None:
            console_output = _logging_state.console_output
        level = _logging_state.level

        if not logger.handlers:
            logger.setLevel(level)

            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

            log_file = log_dir / f"{module_name}.log"
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

            if console_output:
                console_handler = RichHandler(
                    console=Console(stderr=True),
                    rich_tracebacks=True,
                    show_time=True,
                    show_level=True,
                    show_path=False,
                    omit_repeated_times=False,
                    log_time_format="[%X]",
                )
                console_handler.setLevel(level)
                console_handler.setFormatter(logging.Formatter("%(message)s"))
                logger.addHandler(console_handler)

            # Prevent propagation to root logger to avoid duplicate output
            logger.propagate = False

    return logger
