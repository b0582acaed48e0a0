# object_store.py -- Object store for git objects
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

"""Git object store interfaces and implementation.

Objects are stored "loose": one zlib-compressed canonical object per file,
at ``<objects>/<first two hex digits>/<remaining 38 hex digits>``.
"""

__all__ = [
    "DiskObjectStore",
]

import logging
import os
from collections.abc import Callable, Iterator

from .errors import CorruptObject, ObjectNotFound
from .file import FileLocked, GitFile
from .object_format import DEFAULT_OBJECT_FORMAT
from .objects import (
    ObjectID,
    ShaFile,
    compress,
    decode_object,
    decompress,
    hex_to_filename,
    valid_hexsha,
)

logger = logging.getLogger(__name__)

PACK_MODE = 0o444


def _check_hexsha(sha: ObjectID | str) -> ObjectID:
    if isinstance(sha, str):
        sha = sha.encode("ascii")
    if not valid_hexsha(sha):
        raise ValueError(f"invalid object id {sha!r}")
    return sha.lower()


class DiskObjectStore:
    """Git-style object store that exists on disk."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        loose_compression_level: int = -1,
        fsync_object_files: bool = False,
    ) -> None:
        """Open an object store.

        Args:
          path: Path of the object store.
          loose_compression_level: zlib compression level for loose objects
          fsync_object_files: whether to fsync object files for durability
        """
        self.path = os.fspath(path)
        self.loose_compression_level = loose_compression_level
        self.fsync_object_files = fsync_object_files
        self.object_format = DEFAULT_OBJECT_FORMAT

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.path!r})>"

    @classmethod
    def init(cls, path: str | os.PathLike[str], **kwargs: object) -> "DiskObjectStore":
        """Initialize a new disk object store.

        Args:
          path: Path where the object store should be created
          **kwargs: Passed on to the constructor
        Returns:
          New DiskObjectStore instance
        """
        try:
            os.mkdir(path)
        except FileExistsError:
            pass
        return cls(path, **kwargs)  # type: ignore[arg-type]

    def _get_shafile_path(self, sha: ObjectID) -> str:
        return hex_to_filename(self.path, sha)  # type: ignore[return-value]

    def put(self, data: bytes) -> ObjectID:
        """Store a canonical object.

        Writing the same bytes twice is a no-op the second time. If another
        writer holds the lock for the same object and has not finished, the
        lock error is raised rather than reporting an object that is not
        there.

        Args:
          data: Canonical object bytes (``<type> <len>\\0<payload>``)
        Returns: Hex SHA of the stored object
        Raises:
          FileLocked: if the object is locked by another writer and missing
        """
        sha = self.object_format.hash_object_hex(data)
        path = self._get_shafile_path(sha)
        dir = os.path.dirname(path)
        try:
            os.mkdir(dir)
        except FileExistsError:
            pass
        if os.path.exists(path):
            return sha  # Already there, no need to write again
        try:
            with GitFile(
                path, "wb", mask=PACK_MODE, fsync=self.fsync_object_files
            ) as f:
                f.write(compress(data, self.loose_compression_level))
        except FileLocked:
            if not os.path.exists(path):
                raise
            logger.debug("object %s was written concurrently", sha.decode())
        return sha

    def get(self, sha: ObjectID | str) -> bytes:
        """Retrieve the canonical bytes of an object.

        Args:
          sha: Hex SHA of the object
        Returns: Canonical object bytes
        Raises:
          ObjectNotFound: if no such object is stored
          CorruptObject: if the stored data does not decompress, or does not
            hash back to its own key
        """
        sha = _check_hexsha(sha)
        path = self._get_shafile_path(sha)
        try:
            with GitFile(path, "rb") as f:
                stored = f.read()
        except FileNotFoundError as exc:
            raise ObjectNotFound(sha) from exc
        data = decompress(stored, sha)
        if self.object_format.hash_object_hex(data) != sha:
            raise CorruptObject(sha, "contents do not match object id")
        return data

    def add_object(self, obj: ShaFile) -> ObjectID:
        """Add a single object to this object store.

        Args:
          obj: Object to add
        Returns: Hex SHA of the object
        """
        return self.put(obj.as_canonical())

    def get_raw(self, sha: ObjectID | str) -> tuple[bytes, bytes]:
        """Obtain the type name and payload of an object.

        Args:
          sha: Hex SHA of the object
        Returns: tuple with type name and payload
        """
        return decode_object(self.get(sha))

    def __getitem__(self, sha: ObjectID | str) -> ShaFile:
        """Obtain an object by SHA1."""
        return ShaFile.from_canonical(self.get(sha))

    def __contains__(self, sha: object) -> bool:
        """Check if a particular object is present by SHA1."""
        if not isinstance(sha, (bytes, str)):
            return False
        try:
            sha = _check_hexsha(sha)
        except ValueError:
            return False
        return os.path.exists(self._get_shafile_path(sha))

    def __iter__(self) -> Iterator[ObjectID]:
        """Iterate over the SHAs of all loose objects."""
        try:
            bases = sorted(os.listdir(self.path))
        except FileNotFoundError:
            return
        for base in bases:
            if len(base) != 2:
                continue
            for rest in sorted(os.listdir(os.path.join(self.path, base))):
                sha = os.fsencode(base + rest)
                if not valid_hexsha(sha):
                    continue
                yield sha

    def iter_prefix(self, prefix: bytes) -> Iterator[ObjectID]:
        """Iterate over all object SHAs with the given hex prefix."""
        if len(prefix) < 2:
            for sha in self:
                if sha.startswith(prefix):
                    yield sha
            return
        dir = prefix[:2].decode("ascii")
        rest = prefix[2:].decode("ascii")
        try:
            names = sorted(os.listdir(os.path.join(self.path, dir)))
        except FileNotFoundError:
            return
        for name in names:
            if name.startswith(rest):
                sha = os.fsencode(dir + name)
                if valid_hexsha(sha):
                    yield sha

    def add_pack_stream(self, read: Callable[[int], bytes]) -> list[ObjectID]:
        """Ingest a pack stream, storing every object as a loose object.

        Args:
          read: Read function positioned at the start of the pack header
        Returns: List of hex SHAs of the stored objects, in pack order
        """
        from .pack import unpack_pack_stream

        return unpack_pack_stream(self, read)
