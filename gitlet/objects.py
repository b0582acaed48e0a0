# objects.py -- Access to base git objects
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

"""Access to base git objects.

Every object has a canonical form::

    <type-name> <decimal length>\\0<payload>

The SHA-1 of the canonical form is the object's id, and the zlib-compressed
canonical form is what ends up on disk.
"""

__all__ = [
    "BLOB_TYPE_NUM",
    "COMMIT_TYPE_NUM",
    "OBJECT_CLASSES",
    "S_IFGITLINK",
    "TREE_TYPE_NUM",
    "Blob",
    "Commit",
    "ObjectID",
    "RawObjectID",
    "ShaFile",
    "Tree",
    "TreeEntry",
    "compress",
    "decode_object",
    "decode_tree",
    "decompress",
    "encode_object",
    "encode_tree",
    "format_timezone",
    "hex_to_filename",
    "hex_to_sha",
    "key_entry",
    "object_class",
    "object_header",
    "parse_timezone",
    "parse_tree",
    "pretty_format_tree_entry",
    "serialize_tree",
    "sha_to_hex",
    "sorted_tree_entries",
    "sorted_tree_items",
    "valid_hexsha",
]

import binascii
import os
import stat
import zlib
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, NamedTuple

from .errors import (
    CorruptObject,
    MalformedObject,
    MalformedTree,
    UnknownObjectType,
)
from .object_format import DEFAULT_OBJECT_FORMAT

if TYPE_CHECKING:
    from _hashlib import HASH

# Hex object ids are 40 ascii bytes, raw object ids are 20 binary bytes.
ObjectID = bytes
RawObjectID = bytes

COMMIT_TYPE_NUM = 1
TREE_TYPE_NUM = 2
BLOB_TYPE_NUM = 3

# Header fields for commits
_TREE_HEADER = b"tree"
_PARENT_HEADER = b"parent"
_AUTHOR_HEADER = b"author"
_COMMITTER_HEADER = b"committer"

S_IFGITLINK = 0o160000

_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


def S_ISGITLINK(m: int) -> bool:
    """Check if a mode indicates a submodule.

    Args:
      m: Mode to check
    Returns: a ``boolean``
    """
    return stat.S_IFMT(m) == S_IFGITLINK


def compress(data: bytes, level: int = -1) -> bytes:
    """Compress data with zlib.

    Args:
      data: Bytes to compress
      level: zlib compression level (-1 for the zlib default)
    Returns: zlib stream
    """
    compobj = zlib.compressobj(level)
    return compobj.compress(data) + compobj.flush()


def decompress(data: bytes, sha: ObjectID | None = None) -> bytes:
    """Decompress a complete zlib stream.

    Args:
      data: zlib stream
      sha: Optional hex SHA the data belongs to, used in error messages
    Returns: Decompressed bytes
    Raises:
      CorruptObject: if the data is not a complete zlib stream
    """
    dcomp = zlib.decompressobj()
    try:
        dcomped = dcomp.decompress(data)
        dcomped += dcomp.flush()
    except zlib.error as e:
        raise CorruptObject(sha, str(e)) from e
    if not dcomp.eof:
        raise CorruptObject(sha, "incomplete zlib stream")
    return dcomped


def sha_to_hex(sha: RawObjectID) -> ObjectID:
    """Takes a string and returns the hex of the sha within."""
    hexsha = binascii.hexlify(sha)
    if len(hexsha) != DEFAULT_OBJECT_FORMAT.hex_length:
        raise ValueError(f"Incorrect length of sha string: {hexsha!r}")
    return hexsha


def hex_to_sha(hex: ObjectID | str) -> RawObjectID:
    """Takes a hex sha and returns a binary sha."""
    if len(hex) != DEFAULT_OBJECT_FORMAT.hex_length:
        raise ValueError(f"Incorrect length of hexsha: {hex!r}")
    try:
        return binascii.unhexlify(hex)
    except TypeError as exc:
        if not isinstance(hex, bytes):
            raise
        raise ValueError(exc.args[0]) from exc


def valid_hexsha(hex: bytes | str) -> bool:
    """Check whether hex is a well-formed 40 character hex sha."""
    if len(hex) != DEFAULT_OBJECT_FORMAT.hex_length:
        return False
    if isinstance(hex, str):
        hex = hex.encode("ascii", "replace")
    return all(c in _HEX_DIGITS for c in hex)


def hex_to_filename(path: str | bytes, hex: ObjectID | str) -> str | bytes:
    """Takes a hex sha and returns its filename relative to the given path."""
    # os.path.join accepts bytes or unicode, but all args must be of the same
    # type. Make sure that hex which is expected to be bytes, is the same type
    # as path.
    if isinstance(path, str) and isinstance(hex, bytes):
        hex = hex.decode("ascii")
    elif isinstance(path, bytes) and isinstance(hex, str):
        hex = hex.encode("ascii")
    dir_name = hex[:2]
    file_name = hex[2:]
    # Check from object dir
    return os.path.join(path, dir_name, file_name)  # type: ignore[arg-type]


def filename_to_hex(filename: str | bytes) -> ObjectID:
    """Takes an object filename and returns its corresponding hex sha."""
    names = os.fsencode(filename).rsplit(b"/", 2)[-2:]
    errmsg = f"Invalid object filename: {filename!r}"
    if len(names) != 2:
        raise ValueError(errmsg)
    base, rest = names
    if len(base) != 2 or len(rest) != DEFAULT_OBJECT_FORMAT.hex_length - 2:
        raise ValueError(errmsg)
    hex = base + rest
    if not valid_hexsha(hex):
        raise ValueError(errmsg)
    return hex


def _type_name(type: bytes | str | int) -> bytes:
    if isinstance(type, str):
        type = type.encode("ascii")
    try:
        return object_class(type).type_name
    except KeyError as exc:
        if isinstance(type, int):
            raise UnknownObjectType(str(type).encode("ascii")) from exc
        raise UnknownObjectType(type) from exc


def object_header(type: bytes | str | int, length: int) -> bytes:
    """Return an object header for the given numeric type and text length."""
    return _type_name(type) + b" " + str(length).encode("ascii") + b"\0"


def encode_object(type: bytes | str | int, payload: bytes) -> bytes:
    """Frame a payload as a canonical object.

    Args:
      type: Type name (``b"blob"``) or type number (3)
      payload: Raw object contents
    Returns: ``<type> <len>\\0<payload>``
    """
    return object_header(type, len(payload)) + payload


def decode_object(data: bytes) -> tuple[bytes, bytes]:
    """Split a canonical object into its type name and payload.

    Args:
      data: Canonical object bytes
    Returns: Tuple with type name and payload
    Raises:
      MalformedObject: if the header cannot be parsed or the payload length
        does not match the length declared in the header
      UnknownObjectType: if the type name is not blob, tree or commit
    """
    end = data.find(b"\0")
    if end == -1:
        raise MalformedObject("object header is not terminated by a NUL byte")
    header = data[:end]
    try:
        type_name, size_text = header.split(b" ", 1)
    except ValueError as exc:
        raise MalformedObject(f"invalid object header {header!r}") from exc
    if type_name not in _TYPE_MAP:
        raise UnknownObjectType(type_name)
    if (
        not size_text.isdigit()
        or (len(size_text) > 1 and size_text.startswith(b"0"))
    ):
        raise MalformedObject(f"invalid object length {size_text!r}")
    size = int(size_text)
    payload = data[end + 1 :]
    if len(payload) != size:
        raise MalformedObject(
            f"{type_name.decode('ascii')} object declares {size} bytes, "
            f"but {len(payload)} follow"
        )
    return type_name, payload


class ShaFile:
    """A git SHA file."""

    __slots__ = ("_chunked_text", "_needs_serialization", "_sha")

    type_name: bytes
    type_num: int
    _chunked_text: list[bytes] | None
    _sha: "HASH | None"

    def __init__(self) -> None:
        """Initialize a ShaFile."""
        self._sha = None
        self._chunked_text = []
        self._needs_serialization = True

    @staticmethod
    def from_canonical(data: bytes) -> "ShaFile":
        """Create an object from its canonical form.

        Raises:
          MalformedObject: if the canonical form cannot be parsed
        """
        type_name, payload = decode_object(data)
        return ShaFile.from_raw_string(type_name, payload)

    @staticmethod
    def from_raw_string(type: bytes | int, string: bytes) -> "ShaFile":
        """Creates an object of the indicated type from the raw string given.

        Args:
          type: The type name or numeric type of the object.
          string: The raw uncompressed contents.
        """
        try:
            cls = object_class(type)
        except KeyError as exc:
            raise UnknownObjectType(
                type if isinstance(type, bytes) else str(type).encode("ascii")
            ) from exc
        obj = cls()
        obj.set_raw_string(string)
        return obj

    @classmethod
    def from_string(cls, string: bytes) -> "ShaFile":
        """Create a ShaFile from a string."""
        obj = cls()
        obj.set_raw_string(string)
        return obj

    def set_raw_string(self, text: bytes) -> None:
        """Set the contents of this object from a serialized string."""
        if not isinstance(text, bytes):
            raise TypeError(f"Expected bytes for text, got {text!r}")
        self.set_raw_chunks([text])

    def set_raw_chunks(self, chunks: list[bytes]) -> None:
        """Set the contents of this object from a list of chunks."""
        self._chunked_text = chunks
        self._deserialize(chunks)
        self._sha = None
        self._needs_serialization = False

    def _deserialize(self, chunks: list[bytes]) -> None:
        raise NotImplementedError(self._deserialize)

    def _serialize(self) -> list[bytes]:
        raise NotImplementedError(self._serialize)

    def as_raw_chunks(self) -> list[bytes]:
        """Return chunks with serialization of the object."""
        if self._needs_serialization:
            self._sha = None
            self._chunked_text = self._serialize()
            self._needs_serialization = False
        assert self._chunked_text is not None
        return self._chunked_text

    def as_raw_string(self) -> bytes:
        """Return raw string with serialization of the object."""
        return b"".join(self.as_raw_chunks())

    def raw_length(self) -> int:
        """Returns the length of the raw string of this object."""
        return sum(map(len, self.as_raw_chunks()))

    def _header(self) -> bytes:
        return object_header(self.type_num, self.raw_length())

    def as_canonical(self) -> bytes:
        """Return the canonical form: header followed by the payload."""
        return self._header() + self.as_raw_string()

    def as_pretty_string(self) -> str:
        """Return a string representing this object, fit for display."""
        return self.as_raw_string().decode("utf-8", "replace")

    def sha(self) -> "HASH":
        """The SHA1 object that is the name of this object."""
        if self._sha is None or self._needs_serialization:
            new_sha = DEFAULT_OBJECT_FORMAT.new_hash()
            new_sha.update(self._header())
            for chunk in self.as_raw_chunks():
                new_sha.update(chunk)
            self._sha = new_sha
        return self._sha

    @property
    def id(self) -> ObjectID:
        """The hex SHA of this object."""
        return self.sha().hexdigest().encode("ascii")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id!r}>"

    def __ne__(self, other: object) -> bool:
        """Check whether this object does not match the other."""
        return not isinstance(other, ShaFile) or self.id != other.id

    def __eq__(self, other: object) -> bool:
        """Return True if the SHAs of the two objects match."""
        return isinstance(other, ShaFile) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class Blob(ShaFile):
    """A Git Blob object."""

    __slots__ = ()

    type_name = b"blob"
    type_num = BLOB_TYPE_NUM

    def __init__(self) -> None:
        """Initialize a new Blob object."""
        super().__init__()
        self._chunked_text = []
        self._needs_serialization = False

    def _get_data(self) -> bytes:
        return self.as_raw_string()

    def _set_data(self, data: bytes) -> None:
        self.set_raw_string(data)

    data = property(
        _get_data, _set_data, doc="The text contained within the blob object."
    )

    def _deserialize(self, chunks: list[bytes]) -> None:
        pass

    def _serialize(self) -> list[bytes]:
        assert self._chunked_text is not None
        return self._chunked_text

    @classmethod
    def from_path(cls, path: str | bytes) -> "Blob":
        """Create a blob with the contents of a file on disk."""
        with open(path, "rb") as f:
            return cls.from_string(f.read())  # type: ignore[return-value]


class TreeEntry(NamedTuple):
    """Named tuple encapsulating a single tree entry."""

    path: bytes
    mode: int
    sha: ObjectID


def parse_tree(text: bytes) -> Iterator[tuple[bytes, int, ObjectID]]:
    """Parse a tree text.

    Args:
      text: Serialized text to parse
    Returns: iterator of tuples of (name, mode, sha)

    Raises:
      MalformedTree: if the text ends in the middle of an entry, or an entry
        has an invalid mode or name
    """
    count = 0
    length = len(text)
    sha_length = DEFAULT_OBJECT_FORMAT.oid_length
    while count < length:
        mode_end = text.find(b" ", count)
        if mode_end == -1:
            raise MalformedTree(f"tree entry at offset {count} has no mode")
        mode_text = text[count:mode_end]
        try:
            mode = int(mode_text, 8)
        except ValueError as exc:
            raise MalformedTree(f"invalid mode {mode_text!r}") from exc
        name_end = text.find(b"\0", mode_end)
        if name_end == -1:
            raise MalformedTree(f"tree entry at offset {count} has no name")
        name = text[mode_end + 1 : name_end]
        if not name or b"/" in name:
            raise MalformedTree(f"invalid tree entry name {name!r}")
        count = name_end + 1 + sha_length
        if count > length:
            raise MalformedTree(f"tree entry {name!r} is truncated")
        sha = text[name_end + 1 : count]
        yield (name, mode, sha_to_hex(sha))


def serialize_tree(items: Iterable[tuple[bytes, int, ObjectID]]) -> Iterator[bytes]:
    """Serialize the items in a tree to a text.

    Args:
      items: Sorted iterable over (name, mode, sha) tuples
    Returns: Serialized tree text as chunks
    """
    for name, mode, hexsha in items:
        yield f"{mode:o}".encode("ascii") + b" " + name + b"\0" + hex_to_sha(hexsha)


def key_entry(entry: tuple[bytes, tuple[int, ObjectID]]) -> bytes:
    """Sort key for tree entry.

    Args:
      entry: (name, value) tuple
    """
    (name, (mode, _sha)) = entry
    if stat.S_ISDIR(mode):
        name += b"/"
    return name


def sorted_tree_entries(entries: Iterable[TreeEntry]) -> list[TreeEntry]:
    """Sort tree entries in the order in which they would be serialized.

    Directories compare as if their name ended in a slash, so a file named
    ``b`` sorts before a directory named ``b``, and ``b.txt`` sorts before
    directory ``b``.

    Args:
      entries: Iterable over TreeEntry tuples
    Returns: Sorted list of TreeEntry tuples
    """
    return sorted(
        entries, key=lambda entry: key_entry((entry.path, (entry.mode, entry.sha)))
    )


def sorted_tree_items(
    entries: dict[bytes, tuple[int, ObjectID]],
) -> Iterator[TreeEntry]:
    """Iterate over a tree entries dictionary.

    Args:
      entries: Dictionary mapping names to (mode, sha) tuples
    Returns: Iterator over (name, mode, hexsha)
    """
    for name, entry in sorted(entries.items(), key=key_entry):
        mode, hexsha = entry
        mode = int(mode)
        if not isinstance(hexsha, bytes):
            raise TypeError(f"Expected bytes for SHA, got {hexsha!r}")
        yield TreeEntry(name, mode, hexsha)


def encode_tree(entries: Iterable[TreeEntry]) -> bytes:
    """Serialize a list of tree entries, sorting them first."""
    return b"".join(serialize_tree(sorted_tree_entries(entries)))


def decode_tree(payload: bytes) -> list[TreeEntry]:
    """Parse a tree payload into a list of entries in stored order."""
    return [TreeEntry(*item) for item in parse_tree(payload)]


def pretty_format_tree_entry(
    name: bytes, mode: int, hexsha: ObjectID, encoding: str = "utf-8"
) -> str:
    """Pretty format tree entry.

    Args:
      name: Name of the directory entry
      mode: Mode of entry
      hexsha: Hexsha of the referenced object
      encoding: Character encoding for the name
    Returns: string describing the tree entry
    """
    if stat.S_ISDIR(mode):
        kind = "tree"
    elif S_ISGITLINK(mode):
        kind = "commit"
    else:
        kind = "blob"
    return "{:06o} {} {}\t{}\n".format(
        mode,
        kind,
        hexsha.decode("ascii"),
        name.decode(encoding, "replace"),
    )


class Tree(ShaFile):
    """A Git tree object."""

    __slots__ = ("_entries",)

    type_name = b"tree"
    type_num = TREE_TYPE_NUM

    def __init__(self) -> None:
        """Initialize an empty Tree."""
        super().__init__()
        self._entries: dict[bytes, tuple[int, ObjectID]] = {}

    def __contains__(self, name: bytes) -> bool:
        return name in self._entries

    def __getitem__(self, name: bytes) -> tuple[int, ObjectID]:
        return self._entries[name]

    def __setitem__(self, name: bytes, value: tuple[int, ObjectID]) -> None:
        """Set a tree entry by name.

        Args:
          name: The name of the entry, as a string.
          value: A tuple of (mode, hexsha), where mode is the mode of the
            entry as an integral type and hexsha is the hex SHA of the entry as
            a string.
        """
        mode, hexsha = value
        self._entries[name] = (mode, hexsha)
        self._needs_serialization = True

    def __delitem__(self, name: bytes) -> None:
        del self._entries[name]
        self._needs_serialization = True

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._entries)

    def add(self, name: bytes, mode: int, hexsha: ObjectID) -> None:
        """Add an entry to the tree.

        Args:
          mode: The mode of the entry as an integral type. Not all
            possible modes are supported by git; see check() for details.
          name: The name of the entry, as a string.
          hexsha: The hex SHA of the entry as a string.
        """
        if not name or b"/" in name:
            raise ValueError(f"invalid tree entry name {name!r}")
        if not valid_hexsha(hexsha):
            raise ValueError(f"invalid sha {hexsha!r}")
        self._entries[name] = (mode, hexsha)
        self._needs_serialization = True

    def iteritems(self) -> Iterator[TreeEntry]:
        """Iterate over entries.

        Returns: iterator over (name, mode, sha) tuples, in the order in which
            they would be serialized
        """
        return sorted_tree_items(self._entries)

    def items(self) -> list[TreeEntry]:
        """Return the sorted entries in this tree.

        Returns: List with (name, mode, sha) tuples
        """
        return list(self.iteritems())

    def _deserialize(self, chunks: list[bytes]) -> None:
        """Grab the entries in the tree."""
        entries: dict[bytes, tuple[int, ObjectID]] = {}
        for name, mode, sha in parse_tree(b"".join(chunks)):
            if name in entries:
                raise MalformedTree(f"duplicate tree entry {name!r}")
            entries[name] = (mode, sha)
        self._entries = entries

    def _serialize(self) -> list[bytes]:
        return list(serialize_tree(self.iteritems()))

    def as_pretty_string(self) -> str:
        """Return a human-readable string representation of this tree."""
        return "".join(
            pretty_format_tree_entry(name, mode, hexsha)
            for name, mode, hexsha in self.iteritems()
        )


def parse_timezone(text: bytes) -> int:
    """Parse a timezone text fragment (e.g. '+0100').

    Args:
      text: Text to parse.
    Returns: Offset from UTC in seconds
    """
    # cgit parses the first character as the sign, and the rest
    #  as an integer (using strtol), which could also be negative.
    #  We do the same for compatibility. See #697828.
    if not text or text[0] not in b"+-":
        raise ValueError(f"Timezone must start with + or - ({text!r})")
    sign = text[:1]
    offset = int(text[1:])
    if sign == b"-":
        offset = -offset
    signum = (offset < 0) and -1 or 1
    offset = abs(offset)
    hours = int(offset / 100)
    minutes = offset % 100
    return signum * (hours * 3600 + minutes * 60)


def format_timezone(offset: int, unnecessary_negative_timezone: bool = False) -> bytes:
    """Format a timezone for Git serialization.

    Args:
      offset: Timezone offset as seconds difference to UTC
      unnecessary_negative_timezone: Whether to write a zero offset as
        ``-0000`` rather than ``+0000``
    """
    if offset % 60 != 0:
        raise ValueError("Unable to handle non-minute offset.")
    if offset < 0 or (offset == 0 and unnecessary_negative_timezone):
        sign = "-"
        offset = -offset
    else:
        sign = "+"
    return ("%c%02d%02d" % (sign, offset // 3600, (offset // 60) % 60)).encode("ascii")  # noqa: UP031


def _parse_identity_line(value: bytes) -> tuple[bytes, int, int, bool]:
    """Split an author or committer value into its parts.

    Returns: tuple of (identity, time, timezone, timezone_neg_utc); the last
        is set for a ``-0000`` zone so it survives re-serialization.
    """
    try:
        identity, timetext, timezonetext = value.rsplit(b" ", 2)
        timezone = parse_timezone(timezonetext)
        return (
            identity,
            int(timetext),
            timezone,
            timezone == 0 and timezonetext.startswith(b"-"),
        )
    except ValueError as exc:
        raise MalformedObject(f"invalid identity line {value!r}") from exc


def _format_identity_line(
    identity: bytes, time: int, timezone: int, timezone_neg_utc: bool = False
) -> bytes:
    return (
        identity
        + b" "
        + str(time).encode("ascii")
        + b" "
        + format_timezone(timezone, timezone_neg_utc)
    )


def _parse_message(
    chunks: Iterable[bytes],
) -> Iterator[tuple[bytes | None, bytes | None]]:
    """Parse a message with a list of fields and a body.

    Args:
      chunks: the raw chunks of the commit object.
    Returns: iterator of tuples of (field, value), one per header line, in the
        order read from the text, possibly including duplicates. Includes a
        field named None for the freeform text.
    """
    text = b"".join(chunks)
    lines = text.split(b"\n")
    k = None
    v = b""
    eof = False
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith(b" "):
            # Indented continuation of the previous header, e.g. gpgsig.
            v += b"\n" + line[1:]
        else:
            if k is not None:
                yield (k, v)
            if line == b"":
                break
            k, sep, v = line.partition(b" ")
            if not sep:
                raise MalformedObject(f"invalid header line {line!r}")
        i += 1
    else:
        eof = True
    if eof:
        if k is not None:
            yield (k, v)
        yield (None, None)
        return
    yield (None, b"\n".join(lines[i + 1 :]))


def serializable_property(name: str, docstring: str | None = None) -> property:
    """A property that helps tracking whether serialization is necessary."""

    def set(obj: "Commit", value: object) -> None:
        setattr(obj, "_" + name, value)
        obj._needs_serialization = True

    def get(obj: "Commit") -> object:
        return getattr(obj, "_" + name)

    return property(get, set, doc=docstring)


class Commit(ShaFile):
    """A git commit object."""

    __slots__ = (
        "_author",
        "_author_time",
        "_author_timezone",
        "_author_timezone_neg_utc",
        "_commit_time",
        "_commit_timezone",
        "_commit_timezone_neg_utc",
        "_committer",
        "_extra",
        "_message",
        "_parents",
        "_tree",
    )

    type_name = b"commit"
    type_num = COMMIT_TYPE_NUM

    def __init__(self) -> None:
        """Initialize an empty Commit."""
        super().__init__()
        self._tree: ObjectID | None = None
        self._parents: list[ObjectID] = []
        self._author: bytes | None = None
        self._author_time: int = 0
        self._author_timezone: int = 0
        self._author_timezone_neg_utc = False
        self._committer: bytes | None = None
        self._commit_time: int = 0
        self._commit_timezone: int = 0
        self._commit_timezone_neg_utc = False
        self._message: bytes = b""
        self._extra: list[tuple[bytes, bytes]] = []

    def _deserialize(self, chunks: list[bytes]) -> None:
        self._parents = []
        self._extra = []
        self._tree = None
        self._author = None
        self._committer = None
        self._message = b""
        for field, value in _parse_message(chunks):
            if field == _TREE_HEADER:
                self._tree = value
            elif field == _PARENT_HEADER:
                assert value is not None
                self._parents.append(value)
            elif field == _AUTHOR_HEADER:
                assert value is not None
                (
                    self._author,
                    self._author_time,
                    self._author_timezone,
                    self._author_timezone_neg_utc,
                ) = _parse_identity_line(value)
            elif field == _COMMITTER_HEADER:
                assert value is not None
                (
                    self._committer,
                    self._commit_time,
                    self._commit_timezone,
                    self._commit_timezone_neg_utc,
                ) = _parse_identity_line(value)
            elif field is None:
                self._message = value or b""
            else:
                assert value is not None
                self._extra.append((field, value))

    def _serialize(self) -> list[bytes]:
        if self._tree is None:
            raise MalformedObject("commit has no tree")
        if self._author is None or self._committer is None:
            raise MalformedObject("commit has no author or committer")
        chunks = [_TREE_HEADER + b" " + self._tree + b"\n"]
        for p in self._parents:
            chunks.append(_PARENT_HEADER + b" " + p + b"\n")
        chunks.append(
            _AUTHOR_HEADER
            + b" "
            + _format_identity_line(
                self._author,
                self._author_time,
                self._author_timezone,
                self._author_timezone_neg_utc,
            )
            + b"\n"
        )
        chunks.append(
            _COMMITTER_HEADER
            + b" "
            + _format_identity_line(
                self._committer,
                self._commit_time,
                self._commit_timezone,
                self._commit_timezone_neg_utc,
            )
            + b"\n"
        )
        for k, v in self._extra:
            if b"\n" in k:
                raise MalformedObject(f"newline in extra header {k!r}")
            chunks.append(k + b" " + v.replace(b"\n", b"\n ") + b"\n")
        chunks.append(b"\n")  # There must be a new line after the headers
        chunks.append(self._message)
        return chunks

    tree = serializable_property("tree", "Tree that is the state of this commit")

    def _get_parents(self) -> list[ObjectID]:
        """Return a list of parents of this commit."""
        return self._parents

    def _set_parents(self, value: list[ObjectID]) -> None:
        """Set a list of parents of this commit."""
        self._needs_serialization = True
        self._parents = value

    parents = property(
        _get_parents,
        _set_parents,
        doc="Parents of this commit, by their SHA1.",
    )

    @property
    def extra(self) -> list[tuple[bytes, bytes]]:
        """Return extra settings of this commit."""
        return self._extra

    author = serializable_property("author", "The name of the author of the commit")

    committer = serializable_property(
        "committer", "The name of the committer of the commit"
    )

    message = serializable_property("message", "The commit message")

    commit_time = serializable_property(
        "commit_time",
        "The timestamp of the commit. As the number of seconds since the epoch.",
    )

    commit_timezone = serializable_property(
        "commit_timezone", "The zone the commit time is in"
    )

    commit_timezone_neg_utc = serializable_property(
        "commit_timezone_neg_utc", "Whether the commit timezone is written as -0000"
    )

    author_time = serializable_property(
        "author_time",
        "The timestamp the commit was written. As the number of "
        "seconds since the epoch.",
    )

    author_timezone = serializable_property(
        "author_timezone", "Returns the zone the author time is in."
    )

    author_timezone_neg_utc = serializable_property(
        "author_timezone_neg_utc", "Whether the author timezone is written as -0000"
    )


OBJECT_CLASSES: tuple[type[ShaFile], ...] = (
    Commit,
    Tree,
    Blob,
)

_TYPE_MAP: dict[bytes | int, type[ShaFile]] = {}

for cls in OBJECT_CLASSES:
    _TYPE_MAP[cls.type_name] = cls
    _TYPE_MAP[cls.type_num] = cls


def object_class(type: bytes | int) -> type[ShaFile]:
    """Get the object class corresponding to the given type.

    Args:
      type: Either a type name string or a numeric type.
    Returns: The ShaFile subclass corresponding to the given type.
    Raises:
      KeyError: if the type is not blob, tree or commit
    """
    return _TYPE_MAP[type]
