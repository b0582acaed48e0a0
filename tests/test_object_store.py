# test_object_store.py -- Tests for the object store interface.
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

"""Tests for the object store interface."""

import os
import zlib
from io import BytesIO
from unittest.mock import patch

from gitlet.errors import CorruptObject, ObjectNotFound
from gitlet.file import FileLocked, GitFile
from gitlet.object_store import DiskObjectStore
from gitlet.objects import Blob, Tree, compress, hex_to_filename
from gitlet.pack import write_pack_objects

from . import TestCase

HELLO_ID = b"ce013625030ba8dba906f756967f9e9ca394464a"


class DiskObjectStoreTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.store_dir = os.path.join(self.mkdtemp(), "objects")
        self.store = DiskObjectStore.init(self.store_dir)

    def test_put_get(self) -> None:
        sha = self.store.put(b"blob 6\x00hello\n")
        self.assertEqual(HELLO_ID, sha)
        self.assertEqual(b"blob 6\x00hello\n", self.store.get(sha))

    def test_shard_path(self) -> None:
        self.store.put(b"blob 6\x00hello\n")
        path = os.path.join(
            self.store_dir, "ce", "013625030ba8dba906f756967f9e9ca394464a"
        )
        self.assertTrue(os.path.isfile(path))
        with open(path, "rb") as f:
            self.assertEqual(b"blob 6\x00hello\n", zlib.decompress(f.read()))

    def test_put_idempotent(self) -> None:
        sha = self.store.put(b"blob 6\x00hello\n")
        path = hex_to_filename(self.store_dir, sha)
        mtime = os.stat(path).st_mtime_ns
        self.assertEqual(sha, self.store.put(b"blob 6\x00hello\n"))
        self.assertEqual(mtime, os.stat(path).st_mtime_ns)
        self.assertEqual([sha], list(self.store))

    def test_put_stale_lock(self) -> None:
        path = hex_to_filename(self.store_dir, HELLO_ID)
        os.mkdir(os.path.dirname(path))
        with open(path + ".lock", "wb"):
            pass
        self.assertRaises(FileLocked, self.store.put, b"blob 6\x00hello\n")
        self.assertRaises(ObjectNotFound, self.store.get, HELLO_ID)

        os.remove(path + ".lock")
        self.assertEqual(HELLO_ID, self.store.put(b"blob 6\x00hello\n"))
        self.assertEqual(b"blob 6\x00hello\n", self.store.get(HELLO_ID))

    def test_put_locked_by_finished_writer(self) -> None:
        path = hex_to_filename(self.store_dir, HELLO_ID)
        real_gitfile = GitFile

        def finish_then_lock(filename, *args, **kwargs):
            # Another writer completes the object while we wait on its lock.
            with real_gitfile(filename, "wb") as f:
                f.write(compress(b"blob 6\x00hello\n"))
            raise FileLocked(filename, filename + ".lock")

        with patch("gitlet.object_store.GitFile", finish_then_lock):
            self.assertEqual(HELLO_ID, self.store.put(b"blob 6\x00hello\n"))
        self.assertTrue(os.path.exists(path))
        self.assertEqual(b"blob 6\x00hello\n", self.store.get(HELLO_ID))

    def test_compression_level(self) -> None:
        store = DiskObjectStore(self.store_dir, loose_compression_level=0)
        sha = store.put(b"blob 6\x00hello\n")
        self.assertEqual(b"blob 6\x00hello\n", store.get(sha))

    def test_get_missing(self) -> None:
        with self.assertRaises(ObjectNotFound) as cm:
            self.store.get(HELLO_ID)
        self.assertEqual(HELLO_ID, cm.exception.sha)
        self.assertIsInstance(cm.exception, KeyError)
        self.assertRaises(KeyError, self.store.__getitem__, HELLO_ID)

    def test_get_invalid_sha(self) -> None:
        self.assertRaises(ValueError, self.store.get, b"abcd")
        self.assertRaises(ValueError, self.store.get, b"z" * 40)

    def test_get_corrupt_zlib(self) -> None:
        path = hex_to_filename(self.store_dir, HELLO_ID)
        os.mkdir(os.path.dirname(path))
        with open(path, "wb") as f:
            f.write(b"this is not zlib")
        self.assertRaises(CorruptObject, self.store.get, HELLO_ID)

    def test_get_hash_mismatch(self) -> None:
        path = hex_to_filename(self.store_dir, HELLO_ID)
        os.mkdir(os.path.dirname(path))
        with open(path, "wb") as f:
            f.write(compress(b"blob 6\x00HELLO\n"))
        with self.assertRaises(CorruptObject) as cm:
            self.store.get(HELLO_ID)
        self.assertEqual(HELLO_ID, cm.exception.sha)

    def test_add_object(self) -> None:
        blob = Blob.from_string(b"yummy data")
        self.assertEqual(blob.id, self.store.add_object(blob))
        self.assertIn(blob.id, self.store)
        self.assertEqual(blob, self.store[blob.id])
        self.assertEqual((b"blob", b"yummy data"), self.store.get_raw(blob.id))

    def test_getitem_str(self) -> None:
        self.store.put(b"blob 6\x00hello\n")
        self.assertEqual(b"hello\n", self.store[HELLO_ID.decode()].as_raw_string())

    def test_contains(self) -> None:
        self.assertNotIn(HELLO_ID, self.store)
        self.store.put(b"blob 6\x00hello\n")
        self.assertIn(HELLO_ID, self.store)
        self.assertNotIn(b"not a sha", self.store)
        self.assertNotIn(42, self.store)

    def test_iter(self) -> None:
        self.assertEqual([], list(self.store))
        b1 = self.store.add_object(Blob.from_string(b"a"))
        b2 = self.store.add_object(Blob.from_string(b"b"))
        self.assertEqual(sorted([b1, b2]), list(self.store))

    def test_iter_prefix(self) -> None:
        self.store.put(b"blob 6\x00hello\n")
        t = self.store.add_object(Tree())
        self.assertEqual([HELLO_ID], list(self.store.iter_prefix(b"ce01")))
        self.assertEqual([HELLO_ID], list(self.store.iter_prefix(b"c")))
        self.assertEqual([t], list(self.store.iter_prefix(t[:6])))
        self.assertEqual([], list(self.store.iter_prefix(b"0000")))

    def test_add_pack_stream(self) -> None:
        f = BytesIO()
        blob = Blob.from_string(b"hi")
        tree = Tree()
        tree.add(b"hi.txt", 0o100644, blob.id)
        write_pack_objects(f.write, [blob, tree])
        f.seek(0)
        self.assertEqual([blob.id, tree.id], self.store.add_pack_stream(f.read))
        self.assertEqual(b"blob 2\x00hi", self.store.get(blob.id))
        self.assertEqual(tree, self.store[tree.id])
