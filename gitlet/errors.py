# errors.py -- errors for gitlet
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

"""gitlet-related exception classes."""

__all__ = [
    "ChecksumMismatch",
    "CorruptObject",
    "FileFormatException",
    "GitProtocolError",
    "GitletError",
    "HangupException",
    "InvalidPackHeader",
    "MalformedObject",
    "MalformedTree",
    "NotGitRepository",
    "ObjectNotFound",
    "RefFormatError",
    "SymrefLoop",
    "TruncatedPackEntry",
    "UnknownObjectType",
    "UnsupportedObjectType",
]

import binascii
from collections.abc import Sequence


class GitletError(Exception):
    """Base class for all errors raised by gitlet."""


class FileFormatException(GitletError):
    """Base class for exceptions relating to reading git file formats."""


class MalformedObject(FileFormatException):
    """An object's canonical form could not be parsed."""


class UnknownObjectType(MalformedObject):
    """The type name in an object header is not blob, tree or commit."""

    def __init__(self, type_name: bytes) -> None:
        """Initialize an UnknownObjectType.

        Args:
            type_name: The unrecognized type name from the header.
        """
        self.type_name = type_name
        super().__init__(f"unknown object type {type_name!r}")


class MalformedTree(MalformedObject):
    """A tree payload ended in the middle of an entry or had a bad mode."""


class ObjectNotFound(GitletError, KeyError):
    """The requested object is not present in the object store."""

    def __init__(self, sha: bytes) -> None:
        """Initialize an ObjectNotFound.

        Args:
            sha: Hex SHA of the missing object.
        """
        self.sha = sha
        Exception.__init__(self, f"{sha.decode('ascii')} is not in the object store")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0])


class CorruptObject(GitletError):
    """Stored or transferred object data could not be decompressed or verified."""

    def __init__(self, sha: bytes | None, reason: str) -> None:
        """Initialize a CorruptObject.

        Args:
            sha: Hex SHA of the corrupt object, if known.
            reason: Description of what went wrong.
        """
        self.sha = sha
        self.reason = reason
        if sha is None:
            super().__init__(f"corrupt object: {reason}")
        else:
            super().__init__(f"object {sha.decode('ascii')} is corrupt: {reason}")


class InvalidPackHeader(FileFormatException):
    """The stream does not start with a valid pack header."""


class UnsupportedObjectType(FileFormatException):
    """A pack entry uses a type code that cannot be decoded."""

    def __init__(self, type_num: int) -> None:
        """Initialize an UnsupportedObjectType.

        Args:
            type_num: The type code found in the pack entry header.
        """
        self.type_num = type_num
        super().__init__(f"unsupported pack object type {type_num}")


class TruncatedPackEntry(FileFormatException):
    """A pack entry ended before its declared size was recovered."""


class ChecksumMismatch(GitletError):
    """A checksum didn't match the expected contents."""

    def __init__(
        self,
        expected: bytes | str,
        got: bytes | str,
        extra: str | None = None,
    ) -> None:
        """Initialize a ChecksumMismatch exception.

        Args:
            expected: The expected checksum value (bytes or hex string).
            got: The actual checksum value (bytes or hex string).
            extra: Optional additional error information.
        """
        if isinstance(expected, bytes) and len(expected) == 20:
            expected_str = binascii.hexlify(expected).decode("ascii")
        else:
            expected_str = (
                expected if isinstance(expected, str) else expected.decode("ascii")
            )
        if isinstance(got, bytes) and len(got) == 20:
            got_str = binascii.hexlify(got).decode("ascii")
        else:
            got_str = got if isinstance(got, str) else got.decode("ascii")
        self.expected = expected_str
        self.got = got_str
        self.extra = extra
        message = f"Checksum mismatch: Expected {expected_str}, got {got_str}"
        if self.extra is not None:
            message += f"; {extra}"
        super().__init__(message)


class NotGitRepository(GitletError):
    """Indicates that no Git repository was found."""


class RefFormatError(GitletError):
    """Indicates an invalid ref name."""


class SymrefLoop(GitletError):
    """There is a loop between one or more symrefs."""

    def __init__(self, ref: bytes, depth: int) -> None:
        self.ref = ref
        self.depth = depth
        super().__init__(f"symref loop at {ref!r} after {depth} levels")


class GitProtocolError(GitletError):
    """Git protocol exception."""

    def __eq__(self, other: object) -> bool:
        """Check equality between GitProtocolError instances."""
        return isinstance(other, GitProtocolError) and self.args == other.args

    __hash__ = GitletError.__hash__


class HangupException(GitProtocolError):
    """The remote end closed the connection unexpectedly."""

    def __init__(self, stderr_lines: Sequence[bytes] | None = None) -> None:
        """Initialize a HangupException.

        Args:
            stderr_lines: Optional list of error lines from the remote server.
        """
        if stderr_lines:
            super().__init__(
                "\n".join(
                    line.decode("utf-8", "surrogateescape") for line in stderr_lines
                )
            )
        else:
            super().__init__("The remote server unexpectedly closed the connection.")
        self.stderr_lines = stderr_lines
