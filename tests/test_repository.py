# test_repository.py -- tests for repository.py
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

"""Tests for the repository."""

import os

from gitlet.config import ConfigFile
from gitlet.errors import NotGitRepository
from gitlet.objects import Blob
from gitlet.repo import (
    InvalidUserIdentity,
    Repo,
    check_user_identity,
    get_user_identity,
)

from . import TestCase


class CreateRepositoryTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.path = self.mkdtemp()

    def _read(self, *parts: str) -> bytes:
        with open(os.path.join(self.path, ".git", *parts), "rb") as f:
            return f.read()

    def test_layout(self) -> None:
        repo = Repo.init(self.path)
        self.assertEqual(os.path.join(self.path, ".git"), repo.controldir())
        for d in ("objects", "refs", os.path.join("refs", "heads"), os.path.join("refs", "tags")):
            self.assertTrue(os.path.isdir(os.path.join(self.path, ".git", d)), d)
        self.assertEqual(b"ref: refs/heads/main\n", self._read("HEAD"))

    def test_config(self) -> None:
        repo = Repo.init(self.path)
        config = repo.get_config()
        self.assertEqual(b"0", config.get(b"core", b"repositoryformatversion"))
        self.assertFalse(config.get_boolean(b"core", b"bare"))
        self.assertIsInstance(config.get_boolean(b"core", b"filemode"), bool)

    def test_mkdir(self) -> None:
        path = os.path.join(self.path, "sub", "repo")
        Repo.init(path, mkdir=True)
        self.assertTrue(os.path.isdir(os.path.join(path, ".git", "objects")))

    def test_default_branch_argument(self) -> None:
        Repo.init(self.path, default_branch=b"trunk")
        self.assertEqual(b"ref: refs/heads/trunk\n", self._read("HEAD"))

    def test_default_branch_from_config(self) -> None:
        global_config = os.path.join(self.mkdtemp(), "gitconfig")
        with open(global_config, "wb") as f:
            f.write(b"[init]\n\tdefaultBranch = develop\n")
        self.overrideEnv("GIT_CONFIG_GLOBAL", global_config)
        Repo.init(self.path)
        self.assertEqual(b"ref: refs/heads/develop\n", self._read("HEAD"))

    def test_init_existing(self) -> None:
        Repo.init(self.path)
        self.assertRaises(FileExistsError, Repo.init, self.path)

    def test_head_unborn(self) -> None:
        repo = Repo.init(self.path)
        self.assertRaises(KeyError, repo.head)


class RepositoryAccessTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.path = self.mkdtemp()
        self.repo = Repo.init(self.path)

    def test_not_a_repository(self) -> None:
        self.assertRaises(NotGitRepository, Repo, self.mkdtemp())

    def test_repr(self) -> None:
        self.assertEqual(f"<Repo at {self.path!r}>", repr(self.repo))

    def test_bytes_path(self) -> None:
        self.assertEqual(self.path, Repo(os.fsencode(self.path)).path)

    def test_discover(self) -> None:
        subdir = os.path.join(self.path, "a", "b")
        os.makedirs(subdir)
        self.assertEqual(self.path, Repo.discover(subdir).path)

    def test_discover_cwd(self) -> None:
        self.chdir(self.path)
        self.assertEqual(
            os.path.realpath(self.path), os.path.realpath(Repo.discover().path)
        )

    def test_discover_nothing(self) -> None:
        self.assertRaises(NotGitRepository, Repo.discover, self.mkdtemp())

    def test_object_access(self) -> None:
        blob = Blob.from_string(b"contents\n")
        self.assertNotIn(blob.id, self.repo)
        self.repo.object_store.add_object(blob)
        self.assertIn(blob.id, self.repo)
        self.assertEqual(b"contents\n", self.repo[blob.id].as_raw_string())

    def test_head(self) -> None:
        blob_id = b"a" * 40
        self.repo.refs[b"refs/heads/main"] = blob_id
        self.assertEqual(blob_id, self.repo.head())

    def _set_config(self, name: bytes, value: bytes) -> None:
        config = self.repo.get_config()
        config.set(b"core", name, value)
        config.write_to_path()

    def test_compression_default(self) -> None:
        self.assertEqual(-1, self.repo.object_store.loose_compression_level)

    def test_compression(self) -> None:
        self._set_config(b"compression", b"1")
        self.assertEqual(1, Repo(self.path).object_store.loose_compression_level)

    def test_loose_compression_overrides(self) -> None:
        self._set_config(b"compression", b"1")
        self._set_config(b"looseCompression", b"9")
        self.assertEqual(9, Repo(self.path).object_store.loose_compression_level)

    def test_compression_invalid(self) -> None:
        self._set_config(b"compression", b"fast")
        with self.assertLogs("gitlet.repo", level="WARNING"):
            repo = Repo(self.path)
        self.assertEqual(-1, repo.object_store.loose_compression_level)

    def test_compression_out_of_range(self) -> None:
        self._set_config(b"compression", b"12")
        with self.assertLogs("gitlet.repo", level="WARNING"):
            repo = Repo(self.path)
        self.assertEqual(-1, repo.object_store.loose_compression_level)

    def test_config_stack_prefers_repository(self) -> None:
        global_config = os.path.join(self.mkdtemp(), "gitconfig")
        with open(global_config, "wb") as f:
            f.write(b"[user]\n\tname = Global\n\temail = global@example.com\n")
        self.overrideEnv("GIT_CONFIG_GLOBAL", global_config)
        config = self.repo.get_config()
        config.set(b"user", b"name", b"Local")
        config.write_to_path()
        stack = self.repo.get_config_stack()
        self.assertEqual(b"Local", stack.get(b"user", b"name"))
        self.assertEqual(b"global@example.com", stack.get(b"user", b"email"))

    def test_missing_config(self) -> None:
        os.remove(os.path.join(self.path, ".git", "config"))
        config = self.repo.get_config()
        self.assertIsInstance(config, ConfigFile)
        self.assertEqual(os.path.join(self.path, ".git", "config"), config.path)


class UserIdentityTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.repo = Repo.init(self.mkdtemp())

    def test_from_config(self) -> None:
        config = self.repo.get_config()
        config.set(b"user", b"name", b"Jelmer")
        config.set(b"user", b"email", b"jelmer@example.com")
        config.write_to_path()
        self.assertEqual(
            b"Jelmer <jelmer@example.com>",
            get_user_identity(self.repo.get_config_stack()),
        )

    def test_environment_wins(self) -> None:
        config = self.repo.get_config()
        config.set(b"user", b"name", b"Jelmer")
        config.set(b"user", b"email", b"jelmer@example.com")
        config.write_to_path()
        self.overrideEnv("GIT_AUTHOR_NAME", "Author")
        self.overrideEnv("GIT_AUTHOR_EMAIL", "<author@example.com>")
        stack = self.repo.get_config_stack()
        self.assertEqual(
            b"Author <author@example.com>", get_user_identity(stack, kind="AUTHOR")
        )
        self.assertEqual(
            b"Jelmer <jelmer@example.com>", get_user_identity(stack, kind="COMMITTER")
        )

    def test_check_user_identity(self) -> None:
        check_user_identity(b"Me <me@example.com>")
        self.assertRaises(InvalidUserIdentity, check_user_identity, b"No Email")
        self.assertRaises(InvalidUserIdentity, check_user_identity, b"Fin <")
        self.assertRaises(
            InvalidUserIdentity, check_user_identity, b"Nul <a\0b@example.com>"
        )
        self.assertRaises(
            InvalidUserIdentity, check_user_identity, b"Line <a@example.com>\n"
        )
