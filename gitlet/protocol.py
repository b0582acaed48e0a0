# protocol.py -- Shared parts of the git protocols
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

"""Generic functions for talking the git smart server protocol."""

__all__ = [
    "CAPABILITIES_REF",
    "CAPABILITY_AGENT",
    "CAPABILITY_SYMREF",
    "COMMAND_DONE",
    "COMMAND_WANT",
    "ZERO_SHA",
    "Protocol",
    "agent_string",
    "capability_agent",
    "extract_capabilities",
    "parse_capability",
    "pkt_line",
    "pkt_seq",
]

import logging
from collections.abc import Callable, Iterator

import gitlet

from .errors import GitProtocolError, HangupException

logger = logging.getLogger(__name__)

ZERO_SHA = b"0" * 40

CAPABILITIES_REF = b"capabilities^{}"

CAPABILITY_AGENT = b"agent"
CAPABILITY_SYMREF = b"symref"

COMMAND_WANT = b"want"
COMMAND_DONE = b"done"


def agent_string() -> bytes:
    """Return the agent string identifying this client."""
    return ("gitlet/" + ".".join(map(str, gitlet.__version__))).encode("ascii")


def capability_agent() -> bytes:
    """Return the agent capability advertised by this client."""
    return CAPABILITY_AGENT + b"=" + agent_string()


def parse_capability(capability: bytes) -> tuple[bytes, bytes | None]:
    """Split a capability into its name and optional value.

    Args:
      capability: Capability as sent by the server, e.g. ``b"symref=HEAD:x"``
    Returns: Tuple with the capability name and its value (or None)
    """
    parts = capability.split(b"=", 1)
    if len(parts) == 1:
        return (parts[0], None)
    return (parts[0], parts[1])


def pkt_line(data: bytes | None) -> bytes:
    """Wrap data in a pkt-line.

    Args:
      data: The data to wrap, as a str or None.
    Returns: The data prefixed with its length in pkt-line format; if data was
        None, returns the flush-pkt ('0000').
    """
    if data is None:
        return b"0000"
    return f"{len(data) + 4:04x}".encode("ascii") + data


def pkt_seq(*seq: bytes | None) -> bytes:
    """Wrap a sequence of data in pkt-lines, followed by a flush-pkt."""
    return b"".join([pkt_line(s) for s in seq]) + pkt_line(None)


def extract_capabilities(text: bytes) -> tuple[bytes, list[bytes]]:
    """Extract a capabilities list from a string, if present.

    Args:
      text: String to extract from
    Returns: Tuple with text with capabilities removed and list of capabilities
    """
    if b"\0" not in text:
        return text, []
    text, capabilities = text.rstrip().split(b"\0")
    return (text, capabilities.strip().split(b" "))


class Protocol:
    """Class for interacting with a remote git process over the wire.

    Parts of the git wire protocol use 'pkt-lines' to communicate. A pkt-line
    consists of the length of the line as a 4-byte hex string, followed by the
    payload data. The length includes the 4-byte header. The special line
    '0000' indicates the end of a section of input and is called a 'flush-pkt'.
    """

    def __init__(
        self,
        read: Callable[[int], bytes],
        write: Callable[[bytes], object],
    ) -> None:
        """Initialize Protocol.

        Args:
          read: Function to read bytes from the transport
          write: Function to write bytes to the transport
        """
        self.read = read
        self.write = write

    def read_pkt_line(self) -> bytes | None:
        """Reads a pkt-line from the remote git process.

        Returns: The next string from the stream, without the length prefix, or
            None for a flush-pkt ('0000') or delim-pkt ('0001').
        Raises:
          HangupException: if the stream ends before a full line is read
          GitProtocolError: if the length prefix is not valid hex
        """
        sizestr = self.read(4)
        if not sizestr:
            raise HangupException
        try:
            size = int(sizestr, 16)
        except ValueError as exc:
            raise GitProtocolError(f"Invalid pkt-line length {sizestr!r}") from exc
        if size == 0 or size == 1:  # flush-pkt or delim-pkt
            logger.debug("git< %s", "0000" if size == 0 else "0001")
            return None
        if size < 4:
            raise GitProtocolError(f"Invalid pkt-line length {sizestr!r}")
        pkt_contents = self.read(size - 4)
        if len(pkt_contents) + 4 != size:
            raise GitProtocolError(
                f"Length of pkt read {len(pkt_contents) + 4:04x} "
                f"does not match length prefix {size:04x}"
            )
        logger.debug("git< %s", pkt_contents.rstrip(b"\n").decode("utf-8", "replace"))
        return pkt_contents

    def read_pkt_seq(self) -> Iterator[bytes]:
        """Read a sequence of pkt-lines from the remote git process.

        Returns: Yields each line of data up to but not including the next
            flush-pkt.
        """
        pkt = self.read_pkt_line()
        while pkt:
            yield pkt
            pkt = self.read_pkt_line()

    def write_pkt_line(self, line: bytes | None) -> None:
        """Sends a pkt-line to the remote git process.

        Args:
          line: A string containing the data to send, without the length
            prefix.
        """
        if line is None:
            logger.debug("git> 0000")
        else:
            logger.debug("git> %s", line.rstrip(b"\n").decode("utf-8", "replace"))
        self.write(pkt_line(line))
