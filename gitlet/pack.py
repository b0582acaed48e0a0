# pack.py -- For dealing with packed git objects.
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

"""Classes for dealing with pack streams.

A pack stream bundles many objects for transfer. It starts with a 12 byte
header::

    "PACK" <4 byte version> <4 byte big-endian object count>

followed by that many entries, and a 20 byte SHA-1 of everything before it.
Each entry is a variable-length header carrying the object type and the
uncompressed size, followed by a zlib stream of the object contents. Entries
are not length-prefixed; the end of each zlib stream is the only delimiter,
so whatever the decompressor reads past the end of its stream has to be handed
back to the next entry.

Only whole (non-delta) commit, tree and blob entries are supported.
"""

__all__ = [
    "OFS_DELTA",
    "PACK_SIGNATURE",
    "REF_DELTA",
    "PackStreamReader",
    "UnpackedObject",
    "pack_object_header",
    "read_pack_header",
    "read_zlib_chunks",
    "take_msb_bytes",
    "unpack_object",
    "unpack_pack_stream",
    "write_pack_header",
    "write_pack_object",
    "write_pack_objects",
]

import logging
import struct
import zlib
from collections import deque
from collections.abc import Callable, Iterable, Iterator
from io import BytesIO
from os import SEEK_END
from struct import unpack_from
from typing import TYPE_CHECKING

from .errors import (
    ChecksumMismatch,
    CorruptObject,
    InvalidPackHeader,
    TruncatedPackEntry,
    UnsupportedObjectType,
)
from .object_format import DEFAULT_OBJECT_FORMAT, ObjectFormat
from .objects import (
    BLOB_TYPE_NUM,
    COMMIT_TYPE_NUM,
    TREE_TYPE_NUM,
    ObjectID,
    ShaFile,
    encode_object,
    object_class,
    sha_to_hex,
)

if TYPE_CHECKING:
    from _hashlib import HASH as HashObject

    from .object_store import DiskObjectStore

logger = logging.getLogger(__name__)

PACK_SIGNATURE = b"PACK"

OFS_DELTA = 6
REF_DELTA = 7

SUPPORTED_TYPES = (COMMIT_TYPE_NUM, TREE_TYPE_NUM, BLOB_TYPE_NUM)

_ZLIB_BUFSIZE = 65536


def take_msb_bytes(read: Callable[[int], bytes]) -> list[int]:
    """Read bytes marked with most significant bit.

    Args:
      read: Read function
    Returns: List of bytes read; all but the last have their high bit set
    Raises:
      TruncatedPackEntry: if the stream ends before the last byte
    """
    ret: list[int] = []
    while len(ret) == 0 or ret[-1] & 0x80:
        b = read(1)
        if not b:
            raise TruncatedPackEntry("stream ended inside a pack entry header")
        ret.append(ord(b[:1]))
    return ret


class UnpackedObject:
    """Class encapsulating an object unpacked from a pack stream.

    These objects should only be created from within unpack_object.
    """

    __slots__ = [
        "_sha",  # Cached hex SHA.
        "decomp_chunks",  # Decompressed object chunks.
        "decomp_len",  # Decompressed length of this object.
        "offset",  # Offset in its pack.
        "pack_type_num",  # Type of this object in the pack.
    ]

    def __init__(
        self,
        pack_type_num: int,
        *,
        decomp_len: int,
        decomp_chunks: list[bytes] | None = None,
        offset: int | None = None,
    ) -> None:
        """Initialize an UnpackedObject.

        Args:
            pack_type_num: Type number of this object in the pack
            decomp_len: Decompressed length declared in the entry header
            decomp_chunks: Decompressed chunks
            offset: Offset in the pack stream
        """
        self.offset = offset
        self._sha: ObjectID | None = None
        self.pack_type_num = pack_type_num
        self.decomp_len = decomp_len
        self.decomp_chunks: list[bytes] = decomp_chunks or []

    @property
    def type_name(self) -> bytes:
        """Return the object type name (``b"blob"``, ``b"tree"``, ...)."""
        return object_class(self.pack_type_num).type_name

    def as_canonical(self) -> bytes:
        """Return the canonical form of this object."""
        return encode_object(self.pack_type_num, b"".join(self.decomp_chunks))

    def sha(self) -> ObjectID:
        """Return the hex SHA of this object."""
        if self._sha is None:
            self._sha = DEFAULT_OBJECT_FORMAT.hash_object_hex(self.as_canonical())
        return self._sha

    def sha_file(self) -> ShaFile:
        """Return a ShaFile from this object."""
        return ShaFile.from_raw_string(
            self.pack_type_num, b"".join(self.decomp_chunks)
        )

    def __eq__(self, other: object) -> bool:
        """Check equality with another UnpackedObject."""
        if not isinstance(other, UnpackedObject):
            return False
        for slot in self.__slots__:
            if getattr(self, slot) != getattr(other, slot):
                return False
        return True

    def __repr__(self) -> str:
        data = [f"{s}={getattr(self, s)!r}" for s in self.__slots__]
        return "{}({})".format(self.__class__.__name__, ", ".join(data))


def read_zlib_chunks(
    read_some: Callable[[int], bytes],
    unpacked: UnpackedObject,
    buffer_size: int = _ZLIB_BUFSIZE,
) -> bytes:
    """Read one zlib stream from a buffer.

    Args:
      read_some: Read function that returns at least one byte, but may
        return less than the requested size.
      unpacked: An UnpackedObject to write result data to. After this
        function, its decomp_chunks will be set.
      buffer_size: Size of the read buffer.
    Returns: Leftover unused data read past the end of the zlib stream.

    Raises:
      TruncatedPackEntry: if the input ends before the zlib stream does, or
        the stream inflates to fewer bytes than declared.
      CorruptObject: if a decompression error occurred, or the stream
        inflates to more bytes than declared.
    """
    if unpacked.decomp_len < 0:
        raise ValueError("non-negative zlib data stream size expected")
    decomp_obj = zlib.decompressobj()

    decomp_chunks = unpacked.decomp_chunks
    decomp_len = 0

    while not decomp_obj.eof:
        add = read_some(buffer_size)
        if not add:
            raise TruncatedPackEntry(
                f"stream ended after {decomp_len} of {unpacked.decomp_len} bytes"
            )
        try:
            decomp = decomp_obj.decompress(add)
        except zlib.error as e:
            raise CorruptObject(None, f"pack entry: {e}") from e
        decomp_len += len(decomp)
        decomp_chunks.append(decomp)
        if decomp_len > unpacked.decomp_len:
            raise CorruptObject(
                None,
                f"pack entry inflates past its declared size of "
                f"{unpacked.decomp_len} bytes",
            )

    if decomp_len != unpacked.decomp_len:
        raise TruncatedPackEntry(
            f"pack entry inflated to {decomp_len} of {unpacked.decomp_len} bytes"
        )
    return decomp_obj.unused_data


def read_pack_header(read: Callable[[int], bytes]) -> tuple[int, int]:
    """Read the header of a pack file.

    Args:
      read: Read function
    Returns: Tuple of (pack version, number of objects).
    Raises:
      InvalidPackHeader: if the header is short, lacks the PACK signature,
        or has an unknown version
    """
    header = read(12)
    if len(header) < 12:
        raise InvalidPackHeader(f"stream too short to contain pack: {header!r}")
    if header[:4] != PACK_SIGNATURE:
        raise InvalidPackHeader(f"Invalid pack header {header!r}")
    (version,) = unpack_from(b">L", header, 4)
    if version not in (2, 3):
        raise InvalidPackHeader(f"Version was {version}")
    (num_objects,) = unpack_from(b">L", header, 8)
    return (version, num_objects)


def unpack_object(
    read_all: Callable[[int], bytes],
    read_some: Callable[[int], bytes] | None = None,
    zlib_bufsize: int = _ZLIB_BUFSIZE,
) -> tuple[UnpackedObject, bytes]:
    """Unpack a Git object.

    Args:
      read_all: Read function that blocks until the number of requested
        bytes are read.
      read_some: Read function that returns at least one byte, but may not
        return the number of bytes requested.
      zlib_bufsize: An optional buffer size for zlib operations.
    Returns: A tuple of (unpacked, unused), where unused is the unused data
        leftover from decompression, and unpacked in an UnpackedObject with
        pack_type_num, decomp_len and decomp_chunks set.
    Raises:
      UnsupportedObjectType: for delta entries and unknown type codes
    """
    if read_some is None:
        read_some = read_all

    raw = take_msb_bytes(read_all)
    type_num = (raw[0] >> 4) & 0x07
    size = raw[0] & 0x0F
    for i, byte in enumerate(raw[1:]):
        size += (byte & 0x7F) << ((i * 7) + 4)

    if type_num not in SUPPORTED_TYPES:
        raise UnsupportedObjectType(type_num)

    unpacked = UnpackedObject(type_num, decomp_len=size)
    unused = read_zlib_chunks(read_some, unpacked, buffer_size=zlib_bufsize)
    return unpacked, unused


class PackStreamReader:
    """Class to read a pack stream.

    The pack is read using read() or recv() as appropriate. Data that a zlib
    stream reads past its own end is kept in a buffer and served to the next
    entry.
    """

    def __init__(
        self,
        read_all: Callable[[int], bytes],
        read_some: Callable[[int], bytes] | None = None,
        zlib_bufsize: int = _ZLIB_BUFSIZE,
        object_format: ObjectFormat = DEFAULT_OBJECT_FORMAT,
    ) -> None:
        """Initialize pack stream reader.

        Args:
            read_all: Function to read all requested bytes
            read_some: Function to read some bytes (optional)
            zlib_bufsize: Buffer size for zlib decompression
            object_format: Hash used for the pack trailer
        """
        self.read_all = read_all
        if read_some is None:
            self.read_some = read_all
        else:
            self.read_some = read_some
        self.sha: HashObject = object_format.new_hash()
        self._hash_size = object_format.oid_length
        self._offset = 0
        self._rbuf = BytesIO()
        # trailer is a deque to avoid memory allocation on small reads
        self._trailer: deque[int] = deque()
        self._zlib_bufsize = zlib_bufsize
        self._num_objects = 0

    def _read(self, read: Callable[[int], bytes], size: int) -> bytes:
        """Read up to size bytes using the given callback.

        As a side effect, update the verifier's hash (excluding the last
        hash_size bytes read, which is the pack checksum).
        """
        data = read(size)

        # maintain a trailer of the last hash_size bytes we've read
        n = len(data)
        self._offset += n
        tn = len(self._trailer)
        if n >= self._hash_size:
            to_pop = tn
            to_add = self._hash_size
        else:
            to_pop = max(n + tn - self._hash_size, 0)
            to_add = n
        self.sha.update(bytes(bytearray([self._trailer.popleft() for _ in range(to_pop)])))
        if to_add:
            self._trailer.extend(data[-to_add:])

        # hash everything but the trailer
        self.sha.update(data[: n - to_add])
        return data

    def _buf_len(self) -> int:
        buf = self._rbuf
        start = buf.tell()
        buf.seek(0, SEEK_END)
        end = buf.tell()
        buf.seek(start)
        return end - start

    @property
    def offset(self) -> int:
        """Return current offset in the stream."""
        return self._offset - self._buf_len()

    def read(self, size: int) -> bytes:
        """Read, blocking until size bytes are read."""
        buf_len = self._buf_len()
        if buf_len >= size:
            return self._rbuf.read(size)
        buf_data = self._rbuf.read()
        self._rbuf = BytesIO()
        return buf_data + self._read(self.read_all, size - buf_len)

    def recv(self, size: int) -> bytes:
        """Read up to size bytes, blocking until one byte is read."""
        buf_len = self._buf_len()
        if buf_len:
            data = self._rbuf.read(size)
            if size >= buf_len:
                self._rbuf = BytesIO()
            return data
        return self._read(self.read_some, size)

    def __len__(self) -> int:
        """Return the number of objects in this pack."""
        return self._num_objects

    def read_objects(self, verify_checksum: bool = False) -> Iterator[UnpackedObject]:
        """Read the objects in this pack stream.

        Args:
          verify_checksum: If True, read the pack trailer after the last
            entry and compare it against the SHA-1 of the stream.
        Returns: Iterator over UnpackedObjects with offset, pack_type_num,
            decomp_len and decomp_chunks set.

        Raises:
          InvalidPackHeader: if the stream does not start with a pack header
          UnsupportedObjectType: if an entry is a delta or of unknown type
          TruncatedPackEntry: if the stream ends inside an entry
          CorruptObject: if an entry's zlib stream is invalid
          ChecksumMismatch: if verify_checksum is set and the trailer does
            not match the stream contents
        """
        _pack_version, self._num_objects = read_pack_header(self.read)

        for _ in range(self._num_objects):
            offset = self.offset
            unpacked, unused = unpack_object(
                self.read,
                read_some=self.recv,
                zlib_bufsize=self._zlib_bufsize,
            )
            unpacked.offset = offset

            # prepend any unused data to current read buffer
            buf = BytesIO()
            buf.write(unused)
            buf.write(self._rbuf.read())
            buf.seek(0)
            self._rbuf = buf

            yield unpacked

        if not verify_checksum:
            return

        if self._buf_len() < self._hash_size:
            # Part of the trailer is still on the wire.
            if len(self.read(self._hash_size)) < self._hash_size:
                raise TruncatedPackEntry("stream ended inside the pack checksum")

        pack_sha = bytes(bytearray(self._trailer))
        if pack_sha != self.sha.digest():
            raise ChecksumMismatch(sha_to_hex(pack_sha), self.sha.hexdigest())


def unpack_pack_stream(
    object_store: "DiskObjectStore",
    read_all: Callable[[int], bytes],
    read_some: Callable[[int], bytes] | None = None,
    verify_checksum: bool = False,
) -> list[ObjectID]:
    """Store every object of a pack stream as a loose object.

    Objects are stored as soon as they are decoded; if a later entry fails,
    the objects stored before it remain in the store.

    Args:
      object_store: Store to add the objects to
      read_all: Read function positioned at the start of the pack header
      read_some: Optional read function that may return short reads
      verify_checksum: Whether to verify the pack trailer
    Returns: List of hex SHAs of the stored objects, in pack order
    """
    reader = PackStreamReader(read_all, read_some)
    shas = []
    for unpacked in reader.read_objects(verify_checksum=verify_checksum):
        sha = object_store.put(unpacked.as_canonical())
        logger.debug(
            "unpacked %s %s (%d bytes)",
            unpacked.type_name.decode("ascii"),
            sha.decode("ascii"),
            unpacked.decomp_len,
        )
        shas.append(sha)
    logger.debug("unpacked %d of %d objects", len(shas), len(reader))
    return shas


def pack_object_header(type_num: int, size: int) -> bytes:
    """Create a pack object header for the given object info.

    Args:
      type_num: Numeric type of the object.
      size: Uncompressed object size.
    Returns: A header for a packed object.
    """
    header = []
    c = (type_num << 4) | (size & 15)
    size >>= 4
    while size:
        header.append(c | 0x80)
        c = size & 0x7F
        size >>= 7
    header.append(c)
    return bytes(header)


def write_pack_header(write: Callable[[bytes], object], num_objects: int) -> None:
    """Write a pack header for the given number of objects."""
    write(PACK_SIGNATURE)
    write(struct.pack(b">L", 2))  # Pack version
    write(struct.pack(b">L", num_objects))  # Number of objects in pack


def write_pack_object(
    write: Callable[[bytes], object],
    type_num: int,
    data: bytes,
    *,
    compression_level: int = -1,
) -> None:
    """Write a whole (non-delta) pack entry.

    Args:
      write: Write function to use
      type_num: Numeric type of the object
      data: Raw object contents
      compression_level: the zlib compression level
    """
    if type_num not in SUPPORTED_TYPES:
        raise UnsupportedObjectType(type_num)
    write(pack_object_header(type_num, len(data)))
    compressor = zlib.compressobj(level=compression_level)
    write(compressor.compress(data))
    write(compressor.flush())


def write_pack_objects(
    write: Callable[[bytes], object],
    objects: Iterable[ShaFile],
    *,
    compression_level: int = -1,
) -> bytes:
    """Write a complete pack stream, including the trailing checksum.

    Args:
      write: Write function to use
      objects: Objects to write
      compression_level: the zlib compression level
    Returns: The binary SHA-1 of the pack contents
    """
    objects = list(objects)
    sha = DEFAULT_OBJECT_FORMAT.new_hash()

    def write_and_hash(data: bytes) -> None:
        sha.update(data)
        write(data)

    write_pack_header(write_and_hash, len(objects))
    for obj in objects:
        write_pack_object(
            write_and_hash,
            obj.type_num,
            obj.as_raw_string(),
            compression_level=compression_level,
        )
    digest = sha.digest()
    write(digest)
    return digest
