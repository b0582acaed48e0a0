# test_refs.py -- tests for refs.py
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

"""Tests for gitlet.refs."""

import os

from gitlet.errors import RefFormatError, SymrefLoop
from gitlet.refs import (
    DiskRefsContainer,
    check_ref_format,
    local_branch_name,
    parse_symref_value,
)

from . import TestCase

ONES = b"1" * 40
TWOS = b"2" * 40


class CheckRefFormatTests(TestCase):
    """Tests for the check_ref_format function.

    These are the same tests as in the git test suite.
    """

    def test_valid(self) -> None:
        self.assertTrue(check_ref_format(b"heads/foo"))
        self.assertTrue(check_ref_format(b"foo/bar/baz"))
        self.assertTrue(check_ref_format(b"refs///heads/foo"))
        self.assertTrue(check_ref_format(b"foo./bar"))
        self.assertTrue(check_ref_format(b"heads/foo@bar"))
        self.assertTrue(check_ref_format(b"heads/fix.lock.error"))

    def test_invalid(self) -> None:
        self.assertFalse(check_ref_format(b"foo"))
        self.assertFalse(check_ref_format(b"heads/foo/"))
        self.assertFalse(check_ref_format(b"./foo"))
        self.assertFalse(check_ref_format(b".refs/foo"))
        self.assertFalse(check_ref_format(b"heads/foo..bar"))
        self.assertFalse(check_ref_format(b"heads/foo?bar"))
        self.assertFalse(check_ref_format(b"heads/foo.lock"))
        self.assertFalse(check_ref_format(b"heads/v@{ation"))
        self.assertFalse(check_ref_format(b"heads/foo\bar"))
        self.assertFalse(check_ref_format(b"heads/foo bar"))


class HelperTests(TestCase):
    def test_parse_symref_value(self) -> None:
        self.assertEqual(b"refs/heads/main", parse_symref_value(b"ref: refs/heads/main\n"))
        self.assertRaises(ValueError, parse_symref_value, ONES)

    def test_local_branch_name(self) -> None:
        self.assertEqual(b"refs/heads/main", local_branch_name(b"main"))
        self.assertEqual(b"refs/heads/main", local_branch_name(b"refs/heads/main"))


class DiskRefsContainerTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.controldir = self.mkdtemp()
        os.makedirs(os.path.join(self.controldir, "refs", "heads"))
        self.refs = DiskRefsContainer(self.controldir)

    def write(self, name: str, contents: bytes) -> None:
        path = os.path.join(self.controldir, *name.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(contents)

    def read(self, name: str) -> bytes:
        with open(os.path.join(self.controldir, *name.split("/")), "rb") as f:
            return f.read()

    def test_setitem(self) -> None:
        self.refs[b"refs/heads/main"] = ONES
        self.assertEqual(ONES + b"\n", self.read("refs/heads/main"))
        self.assertEqual(ONES, self.refs[b"refs/heads/main"])

    def test_setitem_creates_directories(self) -> None:
        self.refs[b"refs/remotes/origin/main"] = ONES
        self.assertEqual(ONES, self.refs[b"refs/remotes/origin/main"])

    def test_setitem_invalid(self) -> None:
        self.assertRaises(RefFormatError, self.refs.__setitem__, b"notrefs/foo", ONES)
        self.assertRaises(RefFormatError, self.refs.__setitem__, b"refs/heads/a..b", ONES)
        self.assertRaises(ValueError, self.refs.__setitem__, b"refs/heads/main", b"nope")

    def test_symbolic_ref(self) -> None:
        self.refs.set_symbolic_ref(b"HEAD", b"refs/heads/main")
        self.assertEqual(b"ref: refs/heads/main\n", self.read("HEAD"))
        self.assertRaises(KeyError, self.refs.__getitem__, b"HEAD")
        self.refs[b"refs/heads/main"] = ONES
        self.assertEqual(ONES, self.refs[b"HEAD"])
        self.assertEqual(([b"HEAD", b"refs/heads/main"], ONES), self.refs.follow(b"HEAD"))

    def test_set_through_symref(self) -> None:
        self.refs.set_symbolic_ref(b"HEAD", b"refs/heads/main")
        self.refs[b"HEAD"] = ONES
        self.assertEqual(ONES + b"\n", self.read("refs/heads/main"))
        self.assertEqual(b"ref: refs/heads/main\n", self.read("HEAD"))

    def test_set_if_equals(self) -> None:
        self.refs[b"refs/heads/main"] = ONES
        self.assertFalse(self.refs.set_if_equals(b"refs/heads/main", TWOS, TWOS))
        self.assertEqual(ONES, self.refs[b"refs/heads/main"])
        self.assertTrue(self.refs.set_if_equals(b"refs/heads/main", ONES, TWOS))
        self.assertEqual(TWOS, self.refs[b"refs/heads/main"])
        self.assertFalse(os.path.exists(
            os.path.join(self.controldir, "refs", "heads", "main.lock")
        ))

    def test_symref_loop(self) -> None:
        self.write("refs/heads/loop", b"ref: refs/heads/loop\n")
        self.assertRaises(SymrefLoop, self.refs.__getitem__, b"refs/heads/loop")

    def test_read_ref(self) -> None:
        self.write("HEAD", b"ref: refs/heads/main\n")
        self.assertEqual(b"ref: refs/heads/main", self.refs.read_ref(b"HEAD"))
        self.assertIsNone(self.refs.read_ref(b"refs/heads/missing"))

    def test_packed_refs(self) -> None:
        self.write(
            "packed-refs",
            b"# pack-refs with: peeled fully-peeled sorted \n"
            + ONES + b" refs/tags/v1.0\n"
            + b"^" + TWOS + b"\n"
            + TWOS + b" refs/heads/packed\n",
        )
        self.assertEqual(
            {b"refs/tags/v1.0": ONES, b"refs/heads/packed": TWOS},
            self.refs.get_packed_refs(),
        )
        self.assertEqual(TWOS, self.refs[b"refs/heads/packed"])
        self.assertIn(b"refs/heads/packed", self.refs)

    def test_loose_ref_overrides_packed(self) -> None:
        self.write("packed-refs", TWOS + b" refs/heads/main\n")
        self.refs[b"refs/heads/main"] = ONES
        self.assertEqual(ONES, self.refs[b"refs/heads/main"])

    def test_allkeys(self) -> None:
        self.refs.set_symbolic_ref(b"HEAD", b"refs/heads/main")
        self.refs[b"refs/heads/main"] = ONES
        self.refs[b"refs/tags/v1"] = TWOS
        self.write("refs/heads/bad..name", ONES + b"\n")
        self.assertEqual(
            [b"HEAD", b"refs/heads/main", b"refs/tags/v1"], list(self.refs)
        )

    def test_as_dict(self) -> None:
        self.refs.set_symbolic_ref(b"HEAD", b"refs/heads/main")
        self.refs[b"refs/heads/main"] = ONES
        self.refs[b"refs/heads/other"] = TWOS
        self.assertEqual(
            {b"HEAD": ONES, b"refs/heads/main": ONES, b"refs/heads/other": TWOS},
            self.refs.as_dict(),
        )
        self.assertEqual(
            {b"refs/heads/main": ONES, b"refs/heads/other": TWOS},
            self.refs.as_dict(b"refs/heads/"),
        )

    def test_contains(self) -> None:
        self.assertNotIn(b"refs/heads/main", self.refs)
        self.refs[b"refs/heads/main"] = ONES
        self.assertIn(b"refs/heads/main", self.refs)
