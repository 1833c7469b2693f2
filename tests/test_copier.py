import os
import stat
import unittest
from unittest import TestCase

import xattr

from cmla.errors import CopyEntryFailed, SourceUnavailable
from cmla.utils.copier import CopyWarning, MergeCopier
from tests.fixtures import TempDirMixin, read_tree, write_tree

TREE = {
    '0A/1B2C3D': b'first',
    '0A/nested/deeper/4E5F': b'second',
    'FF/0011': b'\x00\x01\x02binary\xff',
    'version.plist': b'<plist/>',
}


class TestMergeCopier(TestCase, TempDirMixin):

    def setUp(self):
        self.src = os.path.join(self.make_tempdir(), 'uuidtext')
        os.makedirs(self.src)
        write_tree(self.src, TREE)
        self.dst = os.path.join(self.make_tempdir(), 'bundle.logarchive', 'uuidtext')

    def test_copies_tree_verbatim(self):
        copier = MergeCopier()
        warnings = copier.copy(self.src, self.dst, member='uuidtext')
        self.assertEqual(warnings, [])
        self.assertEqual(read_tree(self.dst), TREE)
        self.assertEqual(copier.files_copied, len(TREE))

    def test_missing_source_is_a_warning(self):
        missing = os.path.join(self.src, 'does-not-exist')
        copier = MergeCopier()
        warnings = copier.copy(missing, self.dst, member='network')
        self.assertEqual(len(warnings), 1)
        self.assertIsInstance(warnings[0], CopyWarning)
        self.assertEqual(warnings[0].member, 'network')
        self.assertEqual(warnings[0].path, missing)
        self.assertIsInstance(warnings[0].error, SourceUnavailable)
        self.assertFalse(os.path.exists(self.dst))

    def test_warnings_accumulate_across_calls(self):
        copier = MergeCopier()
        copier.copy(os.path.join(self.src, 'nope'), self.dst, member='a')
        copier.copy(self.src, self.dst, member='b')
        copier.copy(os.path.join(self.src, 'nada'), self.dst, member='c')
        self.assertEqual([w.member for w in copier.warnings], ['a', 'c'])

    def test_single_file_source(self):
        src = os.path.join(self.src, 'version.plist')
        dst = os.path.join(os.path.dirname(self.dst), 'version.plist')
        os.makedirs(os.path.dirname(dst))
        self.assertEqual(MergeCopier().copy(src, dst), [])
        with open(dst, 'rb') as f:
            self.assertEqual(f.read(), b'<plist/>')

    def test_preserves_permission_bits(self):
        os.chmod(os.path.join(self.src, '0A', '1B2C3D'), 0o640)
        os.chmod(os.path.join(self.src, 'FF', '0011'), 0o755)
        os.chmod(os.path.join(self.src, 'FF'), 0o750)
        MergeCopier().copy(self.src, self.dst)
        self.assertEqual(stat.S_IMODE(os.stat(os.path.join(self.dst, '0A', '1B2C3D')).st_mode), 0o640)
        self.assertEqual(stat.S_IMODE(os.stat(os.path.join(self.dst, 'FF', '0011')).st_mode), 0o755)
        self.assertEqual(stat.S_IMODE(os.stat(os.path.join(self.dst, 'FF')).st_mode), 0o750)

    def test_read_only_directory_still_populated(self):
        ro = os.path.join(self.src, '0A', 'nested')
        os.chmod(ro, 0o555)
        self.addCleanup(os.chmod, ro, 0o755)
        warnings = MergeCopier().copy(self.src, self.dst)
        self.assertEqual(warnings, [])
        self.assertEqual(read_tree(self.dst), TREE)
        self.assertEqual(stat.S_IMODE(os.stat(os.path.join(self.dst, '0A', 'nested')).st_mode), 0o555)

    def test_preserves_modification_time(self):
        path = os.path.join(self.src, '0A', '1B2C3D')
        os.utime(path, (1500000000, 1600000000))
        MergeCopier().copy(self.src, self.dst)
        self.assertEqual(int(os.stat(os.path.join(self.dst, '0A', '1B2C3D')).st_mtime), 1600000000)

    def test_merge_into_existing_destination(self):
        write_tree(self.dst, {'0A/1B2C3D': b'stale', 'extra': b'kept'})
        self.assertEqual(MergeCopier().copy(self.src, self.dst), [])
        copied = read_tree(self.dst)
        self.assertEqual(copied['0A/1B2C3D'], b'first')
        self.assertEqual(copied['extra'], b'kept')

    def test_merging_twice_over_read_only_files(self):
        os.chmod(os.path.join(self.src, '0A', '1B2C3D'), 0o444)
        os.chmod(os.path.join(self.src, 'FF'), 0o555)
        self.addCleanup(os.chmod, os.path.join(self.src, 'FF'), 0o755)
        copier = MergeCopier()
        copier.copy(self.src, self.dst)
        copier.copy(self.src, self.dst)
        self.assertEqual(copier.warnings, [])
        self.assertEqual(read_tree(self.dst), TREE)

    def test_symlinks_recreated_not_followed(self):
        outside = os.path.join(self.make_tempdir(), 'host-secret')
        with open(outside, 'wb') as f:
            f.write(b'not evidence')
        os.symlink(outside, os.path.join(self.src, 'abs-link'))
        os.symlink('0A', os.path.join(self.src, 'dir-link'))

        self.assertEqual(MergeCopier().copy(self.src, self.dst), [])
        self.assertTrue(os.path.islink(os.path.join(self.dst, 'abs-link')))
        self.assertEqual(os.readlink(os.path.join(self.dst, 'abs-link')), outside)
        self.assertEqual(os.readlink(os.path.join(self.dst, 'dir-link')), '0A')
        self.assertEqual(read_tree(self.dst), TREE)

    def test_top_level_link_source_recreated(self):
        host = self.make_tempdir()
        write_tree(host, {'HOSTFILE': b'examiner data'})
        link = os.path.join(os.path.dirname(self.src), 'AB')
        os.symlink(host, link)
        os.makedirs(os.path.dirname(self.dst))

        copier = MergeCopier()
        self.assertEqual(copier.copy(link, self.dst), [])
        self.assertTrue(os.path.islink(self.dst))
        self.assertEqual(os.readlink(self.dst), host)
        self.assertEqual(copier.files_copied, 0)

    def test_does_not_write_through_destination_links(self):
        outside = os.path.join(self.make_tempdir(), 'target')
        with open(outside, 'wb') as f:
            f.write(b'untouched')
        os.makedirs(self.dst)
        os.symlink(outside, os.path.join(self.dst, 'version.plist'))

        MergeCopier().copy(self.src, self.dst)
        with open(outside, 'rb') as f:
            self.assertEqual(f.read(), b'untouched')
        self.assertFalse(os.path.islink(os.path.join(self.dst, 'version.plist')))

    def test_conflicting_entry_does_not_stop_siblings(self):
        # a directory where the source has a file
        os.makedirs(os.path.join(self.dst, 'version.plist'))
        warnings = MergeCopier().copy(self.src, self.dst, member='uuidtext')
        self.assertEqual(len(warnings), 1)
        self.assertIsInstance(warnings[0].error, CopyEntryFailed)
        self.assertEqual(warnings[0].path, os.path.join(self.src, 'version.plist'))
        copied = read_tree(self.dst)
        self.assertEqual(copied['FF/0011'], TREE['FF/0011'])
        self.assertEqual(copied['0A/nested/deeper/4E5F'], TREE['0A/nested/deeper/4E5F'])

    @unittest.skipIf(hasattr(os, 'geteuid') and os.geteuid() == 0, 'root can read anything')
    def test_unreadable_entries_are_skipped(self):
        locked_file = os.path.join(self.src, '0A', '1B2C3D')
        locked_dir = os.path.join(self.src, '0A', 'nested')
        os.chmod(locked_file, 0o000)
        os.chmod(locked_dir, 0o000)
        self.addCleanup(os.chmod, locked_file, 0o644)
        self.addCleanup(os.chmod, locked_dir, 0o755)

        warnings = MergeCopier().copy(self.src, self.dst, member='uuidtext')
        failed = sorted(w.path for w in warnings)
        self.assertEqual(failed, sorted([locked_file, locked_dir]))
        self.assertTrue(all(isinstance(w.error, CopyEntryFailed) for w in warnings))

        copied = read_tree(self.dst)
        self.assertEqual(copied['FF/0011'], TREE['FF/0011'])
        self.assertEqual(copied['version.plist'], TREE['version.plist'])
        self.assertNotIn('0A/1B2C3D', copied)

    def test_extended_attributes_copied(self):
        path = os.path.join(self.src, 'FF', '0011')
        try:
            xattr.setxattr(path, 'user.com.apple.quarantine', b'0081;5f000000;Safari;')
        except (IOError, OSError):
            self.skipTest('filesystem does not support user extended attributes')

        self.assertEqual(MergeCopier().copy(self.src, self.dst), [])
        copied = os.path.join(self.dst, 'FF', '0011')
        self.assertEqual(xattr.getxattr(copied, 'user.com.apple.quarantine'), b'0081;5f000000;Safari;')

    def test_extended_attributes_can_be_skipped(self):
        path = os.path.join(self.src, 'FF', '0011')
        try:
            xattr.setxattr(path, 'user.test', b'value')
        except (IOError, OSError):
            self.skipTest('filesystem does not support user extended attributes')

        MergeCopier(preserve_xattrs=False).copy(self.src, self.dst)
        self.assertNotIn('user.test', xattr.listxattr(os.path.join(self.dst, 'FF', '0011')))


if __name__ == '__main__':
    unittest.main()
