# test_file.py -- Test for git files
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

"""Tests for the lock file protocol."""

import io
import os

from gitlet.file import FileLocked, GitFile, ensure_dir_exists

from . import TestCase


class GitFileTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self._tempdir = self.mkdtemp()
        with open(self.path("foo"), "wb") as f:
            f.write(b"foo contents")

    def path(self, filename: str) -> str:
        return os.path.join(self._tempdir, filename)

    def test_invalid(self) -> None:
        foo = self.path("foo")
        self.assertRaises(IOError, GitFile, foo, mode="r")
        self.assertRaises(IOError, GitFile, foo, mode="ab")
        self.assertRaises(IOError, GitFile, foo, mode="r+b")
        self.assertRaises(IOError, GitFile, foo, mode="w+b")
        self.assertRaises(IOError, GitFile, foo, mode="a+bU")

    def test_readonly(self) -> None:
        f = GitFile(self.path("foo"), "rb")
        self.assertIsInstance(f, io.IOBase)
        self.assertEqual(b"foo contents", f.read())
        self.assertEqual(b"", f.read())
        f.seek(4)
        self.assertEqual(b"contents", f.read())
        f.close()

    def test_default_mode(self) -> None:
        with GitFile(self.path("foo")) as f:
            self.assertEqual(b"foo contents", f.read())

    def test_write(self) -> None:
        foo = self.path("foo")
        foo_lock = f"{foo}.lock"

        with open(foo, "rb") as orig_f:
            self.assertEqual(orig_f.read(), b"foo contents")

        self.assertFalse(os.path.exists(foo_lock))
        f = GitFile(foo, "wb")
        self.assertFalse(f.closed)
        self.assertRaises(AttributeError, getattr, f, "not_a_file_property")

        self.assertTrue(os.path.exists(foo_lock))
        f.write(b"new stuff")
        f.close()
        self.assertFalse(os.path.exists(foo_lock))

        with open(foo, "rb") as new_f:
            self.assertEqual(b"new stuff", new_f.read())

    def test_open_twice(self) -> None:
        foo = self.path("foo")
        f1 = GitFile(foo, "wb")
        f1.write(b"new")
        try:
            f2 = GitFile(foo, "wb")
            self.fail()
        except FileLocked:
            pass
        else:
            f2.close()
        f1.write(b" contents")
        f1.close()

        # Ensure trying to open twice doesn't affect original.
        with open(foo, "rb") as f:
            self.assertEqual(b"new contents", f.read())

    def test_abort(self) -> None:
        foo = self.path("foo")
        foo_lock = f"{foo}.lock"

        with open(foo, "rb") as orig_f:
            self.assertEqual(orig_f.read(), b"foo contents")

        f = GitFile(foo, "wb")
        f.write(b"new contents")
        f.abort()
        self.assertTrue(f.closed)
        self.assertFalse(os.path.exists(foo_lock))

        with open(foo, "rb") as new_orig_f:
            self.assertEqual(new_orig_f.read(), b"foo contents")

    def test_abort_close(self) -> None:
        foo = self.path("foo")
        f = GitFile(foo, "wb")
        f.abort()
        try:
            f.close()
        except OSError:
            self.fail()

        f = GitFile(foo, "wb")
        f.close()
        try:
            f.abort()
        except OSError:
            self.fail()

    def test_abort_close_removed(self) -> None:
        foo = self.path("foo")
        f = GitFile(foo, "wb")

        f._file.close()
        os.remove(foo + ".lock")

        f.abort()
        self.assertTrue(f._closed)

    def test_context_manager_aborts_on_error(self) -> None:
        foo = self.path("foo")
        with self.assertRaises(RuntimeError):
            with GitFile(foo, "wb") as f:
                f.write(b"partial")
                raise RuntimeError("interrupted")
        self.assertFalse(os.path.exists(foo + ".lock"))
        with open(foo, "rb") as f:
            self.assertEqual(b"foo contents", f.read())

    def test_mask(self) -> None:
        path = self.path("masked")
        with GitFile(path, "wb", mask=0o444) as f:
            f.write(b"x")
        self.assertEqual(0, os.stat(path).st_mode & 0o222)


class EnsureDirExistsTests(TestCase):
    def test_creates_and_tolerates_existing(self) -> None:
        path = os.path.join(self.mkdtemp(), "a", "b")
        ensure_dir_exists(path)
        self.assertTrue(os.path.isdir(path))
        ensure_dir_exists(path)
