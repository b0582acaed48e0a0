# repo.py -- For dealing with git repositories.
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

"""Repository access.

A repository is a working directory with a ``.git`` control directory
holding the object store, the refs and the configuration. Every operation
takes a `Repo` (or the path to one) explicitly; nothing depends on the
process working directory.
"""

__all__ = [
    "CONTROLDIR",
    "DEFAULT_BRANCH",
    "DefaultIdentityNotFound",
    "InvalidUserIdentity",
    "Repo",
    "check_user_identity",
    "get_user_identity",
]

import logging
import os
import socket
import stat
import zlib

from .config import ConfigFile, StackedConfig
from .errors import GitletError, NotGitRepository
from .object_store import DiskObjectStore
from .objects import ObjectID, ShaFile
from .refs import HEADREF, DiskRefsContainer, local_branch_name

logger = logging.getLogger(__name__)

CONTROLDIR = ".git"
OBJECTDIR = "objects"
REFSDIR = "refs"
REFSDIR_HEADS = "heads"
REFSDIR_TAGS = "tags"

BASE_DIRECTORIES = [
    [OBJECTDIR],
    [REFSDIR],
    [REFSDIR, REFSDIR_HEADS],
    [REFSDIR, REFSDIR_TAGS],
]

DEFAULT_BRANCH = b"main"


class InvalidUserIdentity(GitletError):
    """User identity is not of the format 'user <email>'."""

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"invalid identity {identity!r}")


class DefaultIdentityNotFound(GitletError):
    """Default identity could not be determined."""


def _get_default_identity() -> tuple[str, str]:
    for name in ("LOGNAME", "USER", "LNAME", "USERNAME"):
        username = os.environ.get(name)
        if username:
            break
    else:
        username = None

    try:
        import pwd
    except ImportError:
        fullname = None
    else:
        try:
            entry = pwd.getpwuid(os.getuid())
        except KeyError:
            fullname = None
        else:
            if getattr(entry, "pw_gecos", None):
                fullname = entry.pw_gecos.split(",")[0]
            else:
                fullname = None
            if username is None:
                username = entry.pw_name
    if not fullname:
        if username is None:
            raise DefaultIdentityNotFound("no username found")
        fullname = username
    email = os.environ.get("EMAIL")
    if email is None:
        if username is None:
            raise DefaultIdentityNotFound("no username found")
        email = f"{username}@{socket.gethostname()}"
    return (fullname, email)


def get_user_identity(config: StackedConfig, kind: str | None = None) -> bytes:
    """Determine the identity to use for new commits.

    If kind is set, this first checks
    GIT_${KIND}_NAME and GIT_${KIND}_EMAIL.

    If those variables are not set, then it will fall back
    to reading the user.name and user.email settings from
    the specified configuration.

    If that also fails, then it will fall back to using
    the current users' identity as obtained from the host
    system (e.g. the gecos field, $EMAIL, $USER@$(hostname -f).

    Args:
      config: Configuration stack to read from
      kind: Optional kind to return identity for,
        usually either "AUTHOR" or "COMMITTER".

    Returns:
      A user identity
    """
    user: bytes | None = None
    email: bytes | None = None
    if kind:
        user_uc = os.environ.get("GIT_" + kind + "_NAME")
        if user_uc is not None:
            user = user_uc.encode("utf-8")
        email_uc = os.environ.get("GIT_" + kind + "_EMAIL")
        if email_uc is not None:
            email = email_uc.encode("utf-8")
    if user is None:
        try:
            user = config.get(("user",), "name")
        except KeyError:
            user = None
    if email is None:
        try:
            email = config.get(("user",), "email")
        except KeyError:
            email = None
    if user is None or email is None:
        default_user, default_email = _get_default_identity()
        if user is None:
            user = default_user.encode("utf-8")
        if email is None:
            email = default_email.encode("utf-8")
    if email.startswith(b"<") and email.endswith(b">"):
        email = email[1:-1]
    return user + b" <" + email + b">"


def check_user_identity(identity: bytes) -> None:
    """Verify that a user identity is formatted correctly.

    Args:
      identity: User identity bytestring
    Raises:
      InvalidUserIdentity: Raised when identity is invalid
    """
    try:
        _fst, snd = identity.split(b" <", 1)
    except ValueError as exc:
        raise InvalidUserIdentity(identity.decode("utf-8", "replace")) from exc
    if b">" not in snd:
        raise InvalidUserIdentity(identity.decode("utf-8", "replace"))
    if b"\0" in identity or b"\n" in identity:
        raise InvalidUserIdentity(identity.decode("utf-8", "replace"))


def _determine_file_mode(path: str) -> bool:
    """Probe the file-system to determine whether permissions can be trusted."""
    fname = os.path.join(path, ".probe-permissions")
    with open(fname, "w") as f:
        f.write("")
    try:
        st1 = os.lstat(fname)
        try:
            os.chmod(fname, st1.st_mode ^ stat.S_IXUSR)
        except PermissionError:
            return False
        st2 = os.lstat(fname)
    finally:
        os.unlink(fname)
    return st1.st_mode != st2.st_mode


class Repo:
    """A git repository backed by local disk.

    To open an existing repository, call the constructor with
    the path of the working directory.

    To create a new repository, use the Repo.init class method.

    Attributes:
      path: Path to the working directory
      object_store: The loose object store under ``.git/objects``
      refs: The refs under ``.git``
    """

    def __init__(self, root: str | bytes | os.PathLike[str]) -> None:
        """Open a repository on disk.

        Args:
          root: Path to the repository's working directory.
        Raises:
          NotGitRepository: if root has no ``.git`` directory with an
            object store in it
        """
        root = os.fspath(root)
        if isinstance(root, bytes):
            root = os.fsdecode(root)
        controldir = os.path.join(root, CONTROLDIR)
        if not os.path.isdir(os.path.join(controldir, OBJECTDIR)):
            raise NotGitRepository(f"No git repository was found at {root}")
        self.path = root
        self._controldir = controldir
        self.refs = DiskRefsContainer(controldir)

        config = self.get_config()
        try:
            level = config.get_int(("core",), "looseCompression")
            if level is None:
                level = config.get_int(("core",), "compression", -1)
        except ValueError:
            logger.warning("ignoring invalid core.compression setting")
            level = -1
        assert level is not None
        if not -1 <= level <= zlib.Z_BEST_COMPRESSION:
            logger.warning("ignoring out of range compression level %d", level)
            level = -1
        self.object_store = DiskObjectStore(
            os.path.join(controldir, OBJECTDIR), loose_compression_level=level
        )

    def __repr__(self) -> str:
        return f"<Repo at {self.path!r}>"

    @classmethod
    def discover(cls, start: str | bytes | os.PathLike[str] = ".") -> "Repo":
        """Iterate parent directories to discover a repository.

        Return a Repo object for the first parent directory that looks like a
        Git repository.

        Args:
          start: The directory to start discovery from (defaults to '.')
        """
        path = os.path.abspath(os.fsdecode(start))
        while True:
            try:
                return cls(path)
            except NotGitRepository:
                new_path, _tail = os.path.split(path)
                if new_path == path:  # Root reached
                    break
                path = new_path
        raise NotGitRepository(f"No git repository was found at {os.fsdecode(start)}")

    def controldir(self) -> str:
        """Return the path of the control directory."""
        return self._controldir

    def get_config(self) -> ConfigFile:
        """Retrieve the config object.

        Returns: `ConfigFile` object for the ``.git/config`` file.
        """
        path = os.path.join(self._controldir, "config")
        try:
            return ConfigFile.from_path(path)
        except FileNotFoundError:
            ret = ConfigFile()
            ret.path = path
            return ret

    def get_config_stack(self) -> StackedConfig:
        """Return a config stack for this repository.

        The repository configuration takes precedence over the user-level
        configuration files.
        """
        backends = [self.get_config(), *StackedConfig.default_backends()]
        return StackedConfig(backends, writable=backends[0])

    def head(self) -> ObjectID:
        """Return the SHA1 pointed at by HEAD.

        Raises:
          KeyError: if HEAD does not resolve to a commit yet
        """
        return self.refs[HEADREF]

    def __getitem__(self, name: ObjectID | str) -> ShaFile:
        """Retrieve an object by hex SHA."""
        return self.object_store[name]

    def __contains__(self, name: ObjectID | str) -> bool:
        return name in self.object_store

    @classmethod
    def init(
        cls,
        path: str | bytes | os.PathLike[str],
        *,
        mkdir: bool = False,
        default_branch: bytes | None = None,
    ) -> "Repo":
        """Create a new repository.

        Args:
          path: Path in which to create the repository
          mkdir: Whether to create the directory
          default_branch: Branch HEAD points at; defaults to
            ``init.defaultBranch`` from the user configuration, then ``main``
        Returns: `Repo` instance
        Raises:
          FileExistsError: if path already has a ``.git`` directory
        """
        path = os.fsdecode(os.fspath(path))
        if mkdir:
            os.makedirs(path, exist_ok=True)
        controldir = os.path.join(path, CONTROLDIR)
        os.mkdir(controldir)
        for d in BASE_DIRECTORIES:
            os.mkdir(os.path.join(controldir, *d))

        if default_branch is None:
            try:
                default_branch = StackedConfig(
                    StackedConfig.default_backends()
                ).get(("init",), "defaultBranch")
            except KeyError:
                default_branch = DEFAULT_BRANCH

        cf = ConfigFile()
        cf.set("core", "repositoryformatversion", "0")
        cf.set("core", "filemode", _determine_file_mode(controldir))
        cf.set("core", "bare", False)
        cf.write_to_path(os.path.join(controldir, "config"))

        ret = cls(path)
        ret.refs.set_symbolic_ref(HEADREF, local_branch_name(default_branch))
        logger.debug("initialized repository in %s", controldir)
        return ret
