# porcelain.py -- Porcelain-like layer on top of gitlet
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

"""Simple wrapper that provides porcelain-like functions on top of gitlet.

Currently implemented:
 * cat_file
 * clone
 * commit_tree
 * hash_object
 * init
 * ls_tree
 * write_tree

These functions are meant to behave similarly to the git subcommands.
Differences in behaviour are considered bugs.

Functions should generally accept both the path of a repository and a
`Repo` object as their first argument.
"""

__all__ = [
    "CheckoutError",
    "Error",
    "TimezoneFormatError",
    "cat_file",
    "checkout_tree",
    "clone",
    "commit_dir_tree",
    "commit_tree",
    "get_user_timezones",
    "hash_object",
    "init",
    "ls_tree",
    "open_repo",
    "parse_object",
    "write_tree",
]

import logging
import os
import posixpath
import re
import shutil
import stat
import sys
import time
from typing import BinaryIO
from urllib.parse import urlparse

from .client import HttpGitClient
from .config import StackedConfig
from .errors import GitletError, ObjectNotFound
from .object_store import DiskObjectStore
from .objects import (
    S_ISGITLINK,
    Blob,
    Commit,
    ObjectID,
    ShaFile,
    Tree,
    parse_timezone,
    pretty_format_tree_entry,
    valid_hexsha,
)
from .refs import HEADREF, LOCAL_BRANCH_PREFIX, local_branch_name
from .repo import CONTROLDIR, Repo, check_user_identity, get_user_identity

logger = logging.getLogger(__name__)

RepoPath = str | os.PathLike[str] | Repo

DEFAULT_ENCODING = "utf-8"

DEFAULT_FILE_MODE = stat.S_IFREG | 0o644
EXECUTABLE_FILE_MODE = stat.S_IFREG | 0o755
SYMLINK_MODE = stat.S_IFLNK
DIRECTORY_MODE = stat.S_IFDIR

_MIN_ABBREV = 4


class Error(GitletError):
    """Porcelain-based error."""


class TimezoneFormatError(Error):
    """Raised when the timezone cannot be determined from a given string."""


class CheckoutError(Error):
    """Indicates that a checkout cannot be performed."""


def open_repo(path_or_repo: RepoPath) -> Repo:
    """Open an argument that can be a repository or a path for a repository."""
    if isinstance(path_or_repo, Repo):
        return path_or_repo
    return Repo(path_or_repo)


def _parse_date(value: str) -> tuple[int, int]:
    """Parse a date in git's internal format, ``<epoch> <+hhmm>``."""
    match = re.match(r"^@?([0-9]+) ([+-][0-9]{4})$", value.strip())
    if match is None:
        raise TimezoneFormatError(f"unsupported date format {value!r}")
    try:
        timezone = parse_timezone(match.group(2).encode("ascii"))
    except ValueError as exc:
        raise TimezoneFormatError(f"invalid timezone in {value!r}") from exc
    return int(match.group(1)), timezone


def get_user_timezones() -> tuple[int, int]:
    """Retrieve local timezone as described in git documentation.

    ``GIT_AUTHOR_DATE`` and ``GIT_COMMITTER_DATE`` take precedence.

    Returns: A tuple containing author timezone, committer timezone.
    """
    local_timezone = time.localtime().tm_gmtoff

    if os.environ.get("GIT_AUTHOR_DATE"):
        author_timezone = _parse_date(os.environ["GIT_AUTHOR_DATE"])[1]
    else:
        author_timezone = local_timezone
    if os.environ.get("GIT_COMMITTER_DATE"):
        commit_timezone = _parse_date(os.environ["GIT_COMMITTER_DATE"])[1]
    else:
        commit_timezone = local_timezone

    return author_timezone, commit_timezone


def _get_user_times(now: int) -> tuple[int, int]:
    author_time = commit_time = now
    if os.environ.get("GIT_AUTHOR_DATE"):
        author_time = _parse_date(os.environ["GIT_AUTHOR_DATE"])[0]
    if os.environ.get("GIT_COMMITTER_DATE"):
        commit_time = _parse_date(os.environ["GIT_COMMITTER_DATE"])[0]
    return author_time, commit_time


def parse_object(repo: RepoPath, objectish: str | bytes) -> ShaFile:
    """Look up an object by its full or abbreviated hex SHA.

    Args:
      repo: Repository to look in
      objectish: Hex SHA, or an unambiguous prefix of at least four digits
    Returns: The object
    Raises:
      ObjectNotFound: if no object matches
      Error: if the prefix is too short, not hex or matches several objects
    """
    r = open_repo(repo)
    if isinstance(objectish, str):
        objectish = objectish.encode("ascii")
    objectish = objectish.lower()
    if valid_hexsha(objectish):
        return r.object_store[objectish]
    if len(objectish) < _MIN_ABBREV or not valid_hexsha(
        objectish + b"0" * (40 - len(objectish))
    ):
        raise Error(f"not a valid object name {objectish.decode('ascii', 'replace')}")
    matches = list(r.object_store.iter_prefix(objectish))
    if not matches:
        raise ObjectNotFound(objectish)
    if len(matches) > 1:
        raise Error(f"short object ID {objectish.decode('ascii')} is ambiguous")
    return r.object_store[matches[0]]


def _parse_tree(repo: RepoPath, treeish: str | bytes) -> Tree:
    obj = parse_object(repo, treeish)
    if isinstance(obj, Commit):
        assert obj.tree is not None
        obj = open_repo(repo).object_store[obj.tree]
    if not isinstance(obj, Tree):
        raise Error(f"{obj.id.decode('ascii')} is not a tree object")
    return obj


def init(path: str | os.PathLike[str] = ".") -> Repo:
    """Create a new git repository.

    Running init in an existing repository leaves it untouched.

    Args:
      path: Path to repository.
    Returns: A Repo instance
    """
    if not os.path.exists(path):
        os.makedirs(path)
    if os.path.isdir(os.path.join(path, CONTROLDIR)):
        logger.info(
            "Reinitialized existing Git repository in %s",
            os.path.join(os.path.abspath(path), CONTROLDIR),
        )
        return Repo(path)
    repo = Repo.init(path)
    logger.info("Initialized empty Git repository in %s", os.path.abspath(repo.controldir()))
    return repo


def cat_file(
    repo: RepoPath,
    objectish: str | bytes,
    outstream: BinaryIO | None = None,
    *,
    show: str = "pretty",
) -> None:
    """Print the contents, type or size of an object.

    Args:
      repo: Path to the repository
      objectish: Object to show
      outstream: Stream to write to
      show: One of ``"pretty"`` (contents; trees are listed one entry per
        line), ``"type"`` or ``"size"``
    """
    if outstream is None:
        outstream = sys.stdout.buffer
    obj = parse_object(repo, objectish)
    if show == "type":
        outstream.write(obj.type_name + b"\n")
    elif show == "size":
        outstream.write(str(obj.raw_length()).encode("ascii") + b"\n")
    elif show == "pretty":
        if isinstance(obj, Tree):
            outstream.write(obj.as_pretty_string().encode(DEFAULT_ENCODING))
        else:
            outstream.write(obj.as_raw_string())
    else:
        raise ValueError(f"unknown cat-file mode {show!r}")


def hash_object(
    path: str | os.PathLike[str],
    *,
    repo: RepoPath | None = None,
    write: bool = False,
) -> ObjectID:
    """Compute the object id of a file as a blob, optionally storing it.

    Args:
      path: Path of the file to hash
      repo: Repository to store the blob in; required when write is set
      write: Whether to store the blob in the repository's object store
    Returns: Hex SHA of the blob
    """
    blob = Blob.from_path(os.fspath(path))
    if not write:
        return blob.id
    if repo is None:
        raise ValueError("a repository is required to write objects")
    return open_repo(repo).object_store.add_object(blob)


def ls_tree(
    repo: RepoPath,
    treeish: str | bytes,
    outstream: BinaryIO | None = None,
    recursive: bool = False,
    name_only: bool = False,
) -> None:
    """List contents of a tree.

    Args:
      repo: Path to the repository
      treeish: Tree id to list; a commit id lists the commit's tree
      outstream: Output stream (defaults to stdout)
      recursive: Whether to recursively list files
      name_only: Only print item name
    """
    out = sys.stdout.buffer if outstream is None else outstream

    def list_tree(store: DiskObjectStore, tree: Tree, base: bytes) -> None:
        for name, mode, sha in tree.iteritems():
            if base:
                name = posixpath.join(base, name)
            if recursive and stat.S_ISDIR(mode):
                subtree = store[sha]
                assert isinstance(subtree, Tree)
                list_tree(store, subtree, name)
                continue
            if name_only:
                out.write(name + b"\n")
            else:
                out.write(
                    pretty_format_tree_entry(name, mode, sha).encode(DEFAULT_ENCODING)
                )

    r = open_repo(repo)
    list_tree(r.object_store, _parse_tree(r, treeish), b"")


def commit_dir_tree(
    object_store: DiskObjectStore,
    path: str | bytes,
    exclude: frozenset[bytes] = frozenset([CONTROLDIR.encode("ascii")]),
) -> ObjectID | None:
    """Store the contents of a directory as a tree, bottom-up.

    Regular files become blobs with mode 100644, or 100755 when the owner
    may execute them; symlinks become blobs holding the link target with
    mode 120000. Directories without any files below them are omitted, since
    a tree cannot represent them.

    Args:
      object_store: Store to add blobs and trees to
      path: Directory to store
      exclude: Entry names skipped at every level
    Returns: Hex SHA of the tree, or None if the directory holds no files
    """
    path = os.fsencode(path)
    tree = Tree()
    with os.scandir(path) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        name = entry.name
        if name in exclude:
            continue
        if entry.is_symlink():
            blob = Blob.from_string(os.readlink(entry.path))
            tree.add(name, SYMLINK_MODE, object_store.add_object(blob))
        elif entry.is_dir():
            subtree_id = commit_dir_tree(object_store, entry.path, exclude)
            if subtree_id is not None:
                tree.add(name, DIRECTORY_MODE, subtree_id)
        elif entry.is_file():
            st = entry.stat()
            mode = EXECUTABLE_FILE_MODE if st.st_mode & stat.S_IXUSR else DEFAULT_FILE_MODE
            tree.add(name, mode, object_store.add_object(Blob.from_path(entry.path)))
        else:
            logger.debug("skipping special file %r", entry.path)
    if len(tree) == 0:
        return None
    return object_store.add_object(tree)


def write_tree(repo: RepoPath) -> ObjectID:
    """Write a tree object from the working directory.

    Args:
      repo: Repository for which to write tree
    Returns: tree id for the tree that was written
    """
    r = open_repo(repo)
    tree_id = commit_dir_tree(r.object_store, r.path)
    if tree_id is None:
        # The root tree is written even when the directory is empty.
        tree_id = r.object_store.add_object(Tree())
    return tree_id


def commit_tree(
    repo: RepoPath,
    tree: str | bytes,
    message: str | bytes,
    parents: list[str | bytes] | None = None,
    author: bytes | None = None,
    committer: bytes | None = None,
) -> ObjectID:
    """Create a new commit object.

    Args:
      repo: Path to repository
      tree: An existing tree object
      message: Commit message; a trailing newline is added if missing
      parents: Optional list of parent commit ids
      author: Optional author name and email
      committer: Optional committer name and email
    Returns: Hex SHA of the new commit
    """
    r = open_repo(repo)
    tree_obj = _parse_tree(r, tree)
    parent_ids = []
    for parent in parents or []:
        parent_obj = parse_object(r, parent)
        if not isinstance(parent_obj, Commit):
            raise Error(f"{parent_obj.id.decode('ascii')} is not a valid commit")
        parent_ids.append(parent_obj.id)

    if isinstance(message, str):
        message = message.encode(DEFAULT_ENCODING)
    if not message.endswith(b"\n"):
        message += b"\n"

    config = r.get_config_stack()
    if author is None:
        author = get_user_identity(config, kind="AUTHOR")
    check_user_identity(author)
    if committer is None:
        committer = get_user_identity(config, kind="COMMITTER")
    check_user_identity(committer)

    author_time, commit_time = _get_user_times(int(time.time()))
    author_timezone, commit_timezone = get_user_timezones()

    c = Commit()
    c.tree = tree_obj.id
    c.parents = parent_ids
    c.author = author
    c.author_time = author_time
    c.author_timezone = author_timezone
    c.committer = committer
    c.commit_time = commit_time
    c.commit_timezone = commit_timezone
    c.message = message
    return r.object_store.add_object(c)


def _check_tree_entry_name(name: bytes) -> None:
    if name in (b".", b"..") or name.lower() == CONTROLDIR.encode("ascii"):
        raise CheckoutError(f"refusing to check out path {name!r}")


def checkout_tree(
    object_store: DiskObjectStore, tree_id: ObjectID, path: str | bytes
) -> None:
    """Write the files of a tree into a directory.

    Args:
      object_store: Store holding the tree and its contents
      tree_id: Hex SHA of the tree to check out
      path: Directory to write into; created if missing
    Raises:
      CheckoutError: if the tree contains a name that would escape the
        directory or overwrite the control directory
    """
    path = os.fsencode(path)
    os.makedirs(path, exist_ok=True)
    tree = object_store[tree_id]
    if not isinstance(tree, Tree):
        raise CheckoutError(f"{tree_id!r} is not a tree")
    for name, mode, sha in tree.iteritems():
        _check_tree_entry_name(name)
        target = os.path.join(path, name)
        if stat.S_ISDIR(mode):
            checkout_tree(object_store, sha, target)
        elif S_ISGITLINK(mode):
            # Submodules are not fetched; leave an empty directory.
            os.makedirs(target, exist_ok=True)
        elif stat.S_ISLNK(mode):
            os.symlink(object_store[sha].as_raw_string(), target)
        else:
            with open(target, "wb") as f:
                f.write(object_store[sha].as_raw_string())
            if mode & stat.S_IXUSR:
                os.chmod(target, 0o755)


def _default_clone_target(source: str) -> str:
    name = posixpath.basename(urlparse(source).path.rstrip("/"))
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not name:
        raise Error(f"cannot determine a directory name for {source}")
    return name


def _choose_branch(
    refs: dict[bytes, ObjectID], symrefs: dict[bytes, bytes], branch: str | None
) -> bytes | None:
    if branch is not None:
        ref = local_branch_name(branch.encode(DEFAULT_ENCODING))
        if ref not in refs:
            raise Error(f"Remote branch {branch} not found in upstream origin")
        return ref
    for candidate in (b"refs/heads/main", b"refs/heads/master"):
        if candidate in refs:
            return candidate
    head = symrefs.get(HEADREF)
    if head is not None and head.startswith(LOCAL_BRANCH_PREFIX) and head in refs:
        return head
    return None


def clone(
    source: str,
    target: str | os.PathLike[str] | None = None,
    *,
    branch: str | None = None,
    checkout: bool = True,
    client: HttpGitClient | None = None,
) -> Repo:
    """Clone a repository over smart HTTP.

    The branch checked out is ``branch`` if given, otherwise ``main``, then
    ``master``, then whatever the remote HEAD points at.

    Args:
      source: URL of the remote repository
      target: Directory to clone into; defaults to the last path component
        of the URL, without ``.git``
      branch: Name of the branch to check out
      checkout: Whether to write the branch's files into the target
      client: Client to use; defaults to an `HttpGitClient` for source
    Returns: The new repository
    """
    if target is None:
        target = _default_clone_target(source)
    target = os.fspath(target)
    if os.path.exists(os.path.join(target, CONTROLDIR)):
        raise Error(f"destination path '{target}' already contains a repository")
    mkdir = not os.path.exists(target)

    logger.info("Cloning into '%s'...", target)
    repo = Repo.init(target, mkdir=mkdir)
    try:
        if client is None:
            client = HttpGitClient(
                source, config=StackedConfig(StackedConfig.default_backends())
            )
        result = client.get_refs()
        ref = _choose_branch(result.refs, result.symrefs, branch)

        config = repo.get_config()
        config.set((b"remote", b"origin"), b"url", source.encode(DEFAULT_ENCODING))
        config.set(
            (b"remote", b"origin"),
            b"fetch",
            b"+refs/heads/*:refs/remotes/origin/*",
        )
        config.write_to_path()

        if ref is None:
            logger.warning("warning: You appear to have cloned an empty repository.")
            return repo

        sha = result.refs[ref]
        resp, read = client.fetch_pack([sha])
        try:
            shas = repo.object_store.add_pack_stream(read)
        finally:
            resp.close()
        logger.info("Received %d objects", len(shas))
        if sha not in repo.object_store:
            raise Error(f"remote did not send commit {sha.decode('ascii')}")

        branch_name = ref[len(LOCAL_BRANCH_PREFIX) :]
        repo.refs[b"refs/remotes/origin/" + branch_name] = sha
        repo.refs[ref] = sha
        repo.refs.set_symbolic_ref(HEADREF, ref)

        if checkout:
            commit = repo.object_store[sha]
            if not isinstance(commit, Commit):
                raise Error(f"{ref.decode('utf-8')} does not point at a commit")
            assert commit.tree is not None
            checkout_tree(repo.object_store, commit.tree, repo.path)
    except BaseException:
        if mkdir:
            shutil.rmtree(target)
        else:
            shutil.rmtree(repo.controldir())
        raise
    return repo
