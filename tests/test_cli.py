# test_cli.py -- tests for the command line interface
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

"""Tests for gitlet.cli."""

import io
import os
from unittest.mock import patch

from gitlet import cli
from gitlet.objects import Commit, Tree
from gitlet.repo import Repo

from . import TestCase

HELLO_SHA = "ce013625030ba8dba906f756967f9e9ca394464a"


class CliTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        patcher = patch("gitlet.cli.default_logging_config")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.repo_path = self.mkdtemp()
        self.repo = Repo.init(self.repo_path)
        self.chdir(self.repo_path)
        for kind in ("AUTHOR", "COMMITTER"):
            self.overrideEnv(f"GIT_{kind}_NAME", "Test User")
            self.overrideEnv(f"GIT_{kind}_EMAIL", "test@example.com")
            self.overrideEnv(f"GIT_{kind}_DATE", "1700000000 +0000")

    def run_command(self, *args: str) -> tuple[int | None, str]:
        buf = io.BytesIO()
        stdout = io.TextIOWrapper(buf, encoding="utf-8")
        with patch("sys.stdout", stdout):
            result = cli.main(list(args))
            stdout.flush()
        return result, buf.getvalue().decode("utf-8")

    def write_file(self, name: str, contents: bytes) -> None:
        with open(os.path.join(self.repo_path, name), "wb") as f:
            f.write(contents)


class MainTests(CliTestCase):
    def test_no_arguments(self) -> None:
        result, output = self.run_command()
        self.assertEqual(1, result)
        self.assertIn("usage: gitlet", output)

    def test_unknown_command(self) -> None:
        with self.assertLogs(level="CRITICAL"):
            result, _ = self.run_command("frobnicate")
        self.assertEqual(1, result)

    def test_error_exit_code(self) -> None:
        with self.assertLogs("gitlet.cli", level="ERROR") as cm:
            result, _ = self.run_command("cat-file", "-p", "a" * 40)
        self.assertEqual(1, result)
        self.assertIn("error:", cm.output[0])

    def test_usage_error(self) -> None:
        with patch("sys.stderr", io.StringIO()):
            self.assertRaises(SystemExit, self.run_command, "cat-file", HELLO_SHA)

    def test_help(self) -> None:
        with self.assertLogs("gitlet.cli", level="INFO") as cm:
            self.run_command("help", "-a")
        self.assertIn("INFO:gitlet.cli:  write-tree", cm.output)

    def test_commands(self) -> None:
        self.assertEqual(
            [
                "cat-file",
                "clone",
                "commit-tree",
                "hash-object",
                "help",
                "init",
                "ls-tree",
                "write-tree",
            ],
            sorted(cli.commands),
        )


class InitCommandTests(CliTestCase):
    def test_init_path(self) -> None:
        path = os.path.join(self.mkdtemp(), "new")
        result, _ = self.run_command("init", path)
        self.assertIsNone(result)
        self.assertTrue(os.path.isdir(os.path.join(path, ".git", "objects")))

    def test_init_cwd(self) -> None:
        path = self.mkdtemp()
        self.chdir(path)
        self.run_command("init")
        self.assertTrue(os.path.isdir(os.path.join(path, ".git", "refs", "heads")))


class ObjectCommandTests(CliTestCase):
    def test_hash_object(self) -> None:
        self.write_file("hello.txt", b"hello\n")
        result, output = self.run_command("hash-object", "hello.txt")
        self.assertIsNone(result)
        self.assertEqual(HELLO_SHA + "\n", output)
        self.assertNotIn(HELLO_SHA, self.repo)

    def test_hash_object_write(self) -> None:
        self.write_file("hello.txt", b"hello\n")
        _, output = self.run_command("hash-object", "-w", "hello.txt")
        self.assertEqual(HELLO_SHA + "\n", output)
        self.assertIn(HELLO_SHA, self.repo)

    def test_hash_object_write_locked(self) -> None:
        self.write_file("hello.txt", b"hello\n")
        shard = os.path.join(self.repo_path, ".git", "objects", HELLO_SHA[:2])
        os.mkdir(shard)
        with open(os.path.join(shard, HELLO_SHA[2:] + ".lock"), "wb"):
            pass
        with self.assertLogs("gitlet.cli", level="ERROR"):
            result, output = self.run_command("hash-object", "-w", "hello.txt")
        self.assertEqual(1, result)
        self.assertEqual("", output)
        self.assertNotIn(HELLO_SHA, self.repo)

    def test_hash_object_missing(self) -> None:
        with self.assertLogs("gitlet.cli", level="ERROR"):
            result, _ = self.run_command("hash-object", "missing.txt")
        self.assertEqual(1, result)

    def test_cat_file(self) -> None:
        self.write_file("hello.txt", b"hello\n")
        self.run_command("hash-object", "-w", "hello.txt")
        self.assertEqual("hello\n", self.run_command("cat-file", "-p", HELLO_SHA)[1])
        self.assertEqual("blob\n", self.run_command("cat-file", "-t", HELLO_SHA[:7])[1])
        self.assertEqual("6\n", self.run_command("cat-file", "-s", HELLO_SHA)[1])

    def test_cat_file_from_subdirectory(self) -> None:
        self.write_file("hello.txt", b"hello\n")
        self.run_command("hash-object", "-w", "hello.txt")
        subdir = os.path.join(self.repo_path, "sub")
        os.mkdir(subdir)
        self.chdir(subdir)
        self.assertEqual("blob\n", self.run_command("cat-file", "-t", HELLO_SHA)[1])


    def test_cat_file_malformed_commit(self) -> None:
        payload = (
            b"tree 4b825dc642cb6eb9a060e54bf8d69288fbee4904\n"
            b"author A <a@example.com> 1 \n"
            b"committer A <a@example.com> 1 +0000\n"
            b"\nmessage\n"
        )
        sha = self.repo.object_store.put(
            b"commit " + str(len(payload)).encode("ascii") + b"\x00" + payload
        )
        with self.assertLogs("gitlet.cli", level="ERROR") as cm:
            result, _ = self.run_command("cat-file", "-p", sha.decode("ascii"))
        self.assertEqual(1, result)
        self.assertIn("invalid identity line", cm.output[0])


class TreeCommandTests(CliTestCase):
    def test_write_tree_empty(self) -> None:
        _, output = self.run_command("write-tree")
        self.assertEqual("4b825dc642cb6eb9a060e54bf8d69288fbee4904\n", output)

    def test_write_and_list_tree(self) -> None:
        self.write_file("hello.txt", b"hello\n")
        _, output = self.run_command("write-tree")
        tree_id = output.strip()
        self.assertIsInstance(self.repo[tree_id.encode("ascii")], Tree)
        _, listing = self.run_command("ls-tree", tree_id)
        self.assertEqual(f"100644 blob {HELLO_SHA}\thello.txt\n", listing)
        _, names = self.run_command("ls-tree", "--name-only", tree_id)
        self.assertEqual("hello.txt\n", names)

    def test_commit_tree(self) -> None:
        self.write_file("hello.txt", b"hello\n")
        tree_id = self.run_command("write-tree")[1].strip()
        _, output = self.run_command("commit-tree", "-m", "Initial", tree_id)
        first = output.strip().encode("ascii")
        commit = self.repo[first]
        self.assertIsInstance(commit, Commit)
        self.assertEqual(b"Initial\n", commit.message)
        self.assertEqual([], commit.parents)

        _, output = self.run_command(
            "commit-tree", "-m", "Second", "-p", first.decode("ascii"), tree_id
        )
        self.assertEqual([first], self.repo[output.strip().encode("ascii")].parents)

    def test_commit_tree_needs_message(self) -> None:
        with patch("sys.stderr", io.StringIO()):
            self.assertRaises(
                SystemExit, self.run_command, "commit-tree", "4b825dc642cb"
            )


class CloneCommandTests(CliTestCase):
    def test_clone_arguments(self) -> None:
        with patch("gitlet.porcelain.clone") as clone:
            result, _ = self.run_command(
                "clone", "-b", "dev", "-n", "https://example.com/r.git", "dest"
            )
        self.assertIsNone(result)
        clone.assert_called_once_with(
            "https://example.com/r.git", "dest", branch="dev", checkout=False
        )

    def test_clone_defaults(self) -> None:
        with patch("gitlet.porcelain.clone") as clone:
            self.run_command("clone", "https://example.com/r.git")
        clone.assert_called_once_with(
            "https://example.com/r.git", None, branch=None, checkout=True
        )
