# refs.py -- For dealing with git refs
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

"""Ref handling.

Refs live as files under the control directory: ``HEAD`` and everything
below ``refs/``. A ref file holds either a 40 character hex SHA or
``ref: <other ref>`` for a symbolic ref, followed by a newline.
"""

__all__ = [
    "HEADREF",
    "LOCAL_BRANCH_PREFIX",
    "SYMREF",
    "DiskRefsContainer",
    "check_ref_format",
    "local_branch_name",
    "parse_symref_value",
]

import os
from collections.abc import Iterator

from .errors import RefFormatError, SymrefLoop
from .file import GitFile, ensure_dir_exists
from .objects import ObjectID, valid_hexsha

HEADREF = b"HEAD"
SYMREF = b"ref: "
LOCAL_BRANCH_PREFIX = b"refs/heads/"
BAD_REF_CHARS = set(b"\177 ~^:?*[")

_MAX_SYMREF_DEPTH = 5


def parse_symref_value(contents: bytes) -> bytes:
    """Parse a symref value.

    Args:
      contents: Contents to parse
    Returns: Destination
    """
    if contents.startswith(SYMREF):
        return contents[len(SYMREF) :].rstrip(b"\r\n")
    raise ValueError(contents)


def check_ref_format(refname: bytes) -> bool:
    """Check if a refname is correctly formatted.

    Implements the rules of git-check-ref-format, for a refname without the
    leading ``refs/``.

    Args:
      refname: The refname to check
    Returns: True if refname is valid, False otherwise
    """
    if b"/." in refname or refname.startswith(b"."):
        return False
    if b"/" not in refname:
        return False
    if b".." in refname:
        return False
    for i, c in enumerate(refname):
        if ord(refname[i : i + 1]) < 0o40 or c in BAD_REF_CHARS:
            return False
    if refname[-1] in b"/.":
        return False
    if refname.endswith(b".lock"):
        return False
    if b"@{" in refname or b"\\" in refname:
        return False
    return True


def local_branch_name(name: bytes) -> bytes:
    """Build a full branch ref from a short name.

    Examples:
      >>> local_branch_name(b"main")
      b'refs/heads/main'
      >>> local_branch_name(b"refs/heads/main")
      b'refs/heads/main'
    """
    if name.startswith(LOCAL_BRANCH_PREFIX):
        return name
    return LOCAL_BRANCH_PREFIX + name


class DiskRefsContainer:
    """Refs container that reads refs from disk."""

    def __init__(self, path: str | bytes | os.PathLike[str]) -> None:
        """Initialize DiskRefsContainer.

        Args:
          path: Path of the control directory (``.git``)
        """
        self.path = os.fsencode(os.fspath(path))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.path!r})"

    def _check_refname(self, name: bytes) -> None:
        """Ensure a refname is valid and lives in refs or is HEAD.

        Raises:
          RefFormatError: if a refname is not HEAD or is otherwise not valid.
        """
        if name == HEADREF:
            return
        if not name.startswith(b"refs/") or not check_ref_format(name[5:]):
            raise RefFormatError(name)

    def refpath(self, name: bytes) -> bytes:
        """Return the disk path of a ref."""
        path = name
        if os.path.sep != "/":
            path = path.replace(b"/", os.fsencode(os.path.sep))
        return os.path.join(self.path, path)

    def _iter_loose_refs(self, base: bytes = b"refs/") -> Iterator[bytes]:
        base = base.rstrip(b"/") + b"/"
        refspath = os.path.join(self.path, base.rstrip(b"/"))
        prefix_len = len(os.path.join(self.path, b""))
        for root, dirs, files in os.walk(refspath):
            dirs.sort()
            directory = root[prefix_len:]
            if os.path.sep != "/":
                directory = directory.replace(os.fsencode(os.path.sep), b"/")
            for filename in sorted(files):
                refname = b"/".join([directory, filename])
                if check_ref_format(refname[5:]):
                    yield refname

    def get_packed_refs(self) -> dict[bytes, ObjectID]:
        """Get contents of the packed-refs file.

        Returns: Dictionary mapping ref names to SHA1s; peeled tag lines are
            skipped.
        """
        refs = {}
        try:
            f = GitFile(os.path.join(self.path, b"packed-refs"), "rb")
        except FileNotFoundError:
            return {}
        with f:
            for line in f:
                if line.startswith((b"#", b"^")):
                    continue
                try:
                    sha, name = line.rstrip(b"\r\n").split(b" ", 1)
                except ValueError:
                    continue
                if valid_hexsha(sha):
                    refs[name] = sha
        return refs

    def allkeys(self) -> set[bytes]:
        """Return all reference keys."""
        allkeys = set()
        if os.path.exists(self.refpath(HEADREF)):
            allkeys.add(HEADREF)
        allkeys.update(self._iter_loose_refs())
        allkeys.update(self.get_packed_refs())
        return allkeys

    def __iter__(self) -> Iterator[bytes]:
        return iter(sorted(self.allkeys()))

    def as_dict(self, base: bytes | None = None) -> dict[bytes, ObjectID]:
        """Return the contents of this container as a dictionary.

        Symbolic refs are followed; refs that do not resolve are skipped.
        """
        ret = {}
        for key in self:
            if base is not None and not key.startswith(base):
                continue
            try:
                ret[key] = self[key]
            except (KeyError, SymrefLoop):
                continue
        return ret

    def read_loose_ref(self, name: bytes) -> bytes | None:
        """Read a reference file and return its contents.

        If the reference file a symbolic reference, only read the first line of
        the file. Otherwise, only read the first 40 bytes.

        Args:
          name: the refname to read, relative to refpath
        Returns: The contents of the ref file, or None if the file does not
            exist.
        """
        filename = self.refpath(name)
        try:
            with GitFile(filename, "rb") as f:
                header = f.read(len(SYMREF))
                if header == SYMREF:
                    # Read only the first line
                    return header + next(iter(f), b"").rstrip(b"\r\n")
                else:
                    # Read only the first 40 bytes
                    return header + f.read(40 - len(SYMREF))
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return None

    def read_ref(self, refname: bytes) -> bytes | None:
        """Read a reference without following any references.

        Returns: The contents of the ref file, or None if it does not exist.
        """
        contents = self.read_loose_ref(refname)
        if not contents:
            contents = self.get_packed_refs().get(refname, None)
        return contents

    def follow(self, name: bytes) -> tuple[list[bytes], bytes | None]:
        """Follow a reference name.

        Returns: a tuple of (refnames, sha), wheres refnames are the names of
            references in the chain
        Raises:
          SymrefLoop: if the chain is longer than five symbolic refs
        """
        contents: bytes | None = SYMREF + name
        depth = 0
        refnames = []
        while contents and contents.startswith(SYMREF):
            refname = contents[len(SYMREF) :]
            refnames.append(refname)
            contents = self.read_ref(refname)
            if not contents:
                break
            depth += 1
            if depth > _MAX_SYMREF_DEPTH:
                raise SymrefLoop(name, depth)
        return refnames, contents

    def __contains__(self, refname: bytes) -> bool:
        return bool(self.read_ref(refname))

    def __getitem__(self, name: bytes) -> ObjectID:
        """Get the SHA1 for a reference name.

        This method follows all symbolic references.
        """
        _, sha = self.follow(name)
        if sha is None:
            raise KeyError(name)
        return sha

    def set_symbolic_ref(self, name: bytes, other: bytes) -> None:
        """Make a ref point at another ref.

        Args:
          name: Name of the ref to set
          other: Name of the ref to point at
        """
        self._check_refname(name)
        self._check_refname(other)
        filename = self.refpath(name)
        ensure_dir_exists(os.path.dirname(filename))
        with GitFile(filename, "wb") as f:
            f.write(SYMREF + other + b"\n")

    def set_if_equals(
        self, name: bytes, old_ref: ObjectID | None, new_ref: ObjectID
    ) -> bool:
        """Set a refname to new_ref only if it currently equals old_ref.

        This method follows all symbolic references, so setting ``HEAD``
        updates the branch it points at.

        Args:
          name: The refname to set.
          old_ref: The old sha the refname must refer to, or None to set
            unconditionally.
          new_ref: The new sha the refname will refer to.
        Returns: True if the set was successful, False otherwise.
        """
        self._check_refname(name)
        if not valid_hexsha(new_ref):
            raise ValueError(f"invalid object id {new_ref!r}")
        try:
            realnames, _ = self.follow(name)
            realname = realnames[-1]
        except (KeyError, IndexError, SymrefLoop):
            realname = name
        filename = self.refpath(realname)
        ensure_dir_exists(os.path.dirname(filename))
        with GitFile(filename, "wb") as f:
            if old_ref is not None:
                # read again while holding the lock
                orig_ref = self.read_loose_ref(realname)
                if orig_ref is None:
                    orig_ref = self.get_packed_refs().get(realname)
                if orig_ref != old_ref:
                    f.abort()
                    return False
            f.write(new_ref + b"\n")
        return True

    def __setitem__(self, name: bytes, ref: ObjectID) -> None:
        """Set a reference name to point to the given SHA1.

        This method follows all symbolic references if applicable for the
        subclass.
        """
        self.set_if_equals(name, None, ref)
