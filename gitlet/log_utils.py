# log_utils.py -- Logging utilities for gitlet
# Copyright (C) 2026 The gitlet authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitlet is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Logging utilities for gitlet.

gitlet is also used as a library, and library users may not want to see
any logging output, so a null handler is installed on the ``gitlet`` logger
when this module is imported. Applications (like the command line
interface) call `default_logging_config` to get visible output.

Setting ``GIT_TRACE`` turns on debug output the way git does:

 * ``1``, ``2`` or ``true``: trace to stderr
 * an integer from 3 to 9: trace to that (already open) file descriptor
 * an absolute path: append to that file, or to ``trace.<pid>`` inside it
   if it is a directory
"""

__all__ = [
    "default_logging_config",
    "getLogger",
    "remove_null_handler",
]

import logging
import os
import sys

getLogger = logging.getLogger

TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


class _NullHandler(logging.Handler):
    """No-op logging handler to avoid unexpected logging warnings."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_GITLET_LOGGER = getLogger("gitlet")
_GITLET_LOGGER.addHandler(_NULL_HANDLER)


def _get_trace_target() -> str | int | None:
    """Get the trace target from the GIT_TRACE environment variable.

    Returns:
        - None if tracing is disabled
        - 2 for stderr output (values "1", "2", "true")
        - int (3-9) for file descriptor
        - str for file path (absolute paths or directories)
    """
    trace_value = os.environ.get("GIT_TRACE", "")
    if not trace_value or trace_value.lower() in ("0", "false"):
        return None
    if trace_value.lower() in ("1", "2", "true"):
        return 2
    if trace_value.isdigit() and 3 <= int(trace_value) <= 9:
        return int(trace_value)
    if os.path.isabs(trace_value):
        return trace_value
    return None


def _trace_handler() -> logging.Handler | None:
    """Build a handler for the GIT_TRACE target, if tracing is enabled.

    Targets that cannot be opened produce a warning on stderr and disable
    tracing.
    """
    target = _get_trace_target()
    if target is None:
        return None
    if target == 2:
        return logging.StreamHandler(sys.stderr)
    try:
        if isinstance(target, int):
            return logging.StreamHandler(os.fdopen(target, "w", buffering=1))
        if os.path.isdir(target):
            target = os.path.join(target, f"trace.{os.getpid()}")
        return logging.FileHandler(target, mode="a")
    except OSError as e:
        sys.stderr.write(f"Warning: Failed to open GIT_TRACE target {target}: {e}\n")
        return None


def default_logging_config(level: int = logging.INFO) -> None:
    """Set up logging for command line use.

    With GIT_TRACE set, everything down to DEBUG goes to the trace target
    with timestamps. Otherwise messages at level and above are written to
    stderr without decoration.
    """
    remove_null_handler()
    handler = _trace_handler()
    if handler is not None:
        handler.setFormatter(logging.Formatter(TRACE_FORMAT))
        logging.basicConfig(level=logging.DEBUG, handlers=[handler])
    else:
        logging.basicConfig(level=level, stream=sys.stderr, format="%(message)s")


def remove_null_handler() -> None:
    """Remove the null handler from the gitlet loggers."""
    _GITLET_LOGGER.removeHandler(_NULL_HANDLER)
