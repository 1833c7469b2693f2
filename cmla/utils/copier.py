'''
@ purpose:

Tolerant recursive copy used to populate the log archive. A source that is
missing, or an entry that cannot be read or written, is recorded as a
warning and the walk carries on with the next entry.

'''

import logging
import os
import shutil
import stat
import traceback
from collections import namedtuple

from xattr import getxattr, listxattr, setxattr

from cmla.errors import CopyEntryFailed, SourceUnavailable

log = logging.getLogger(__name__)

CopyWarning = namedtuple('CopyWarning', ['member', 'path', 'error'])

# Namespaces owned by the host (SELinux labels, ACLs); never copied over.
_SKIPPED_XATTR_PREFIXES = ('security.', 'system.')


class MergeCopier(object):
    """Merge a source tree into a destination inside the bundle.

    Files are copied verbatim along with their permission bits, access and
    modification times and extended attributes. Directories are created as
    they are found but only get their source permissions and times once
    the walk is done, deepest first, so that read-only source directories
    do not stop their own children being written. Symbolic links are
    recreated, never followed.

    Every call to copy() returns the warnings it raised; self.warnings holds
    everything recorded over the copier's lifetime.
    """

    def __init__(self, preserve_xattrs=True):
        self.preserve_xattrs = preserve_xattrs
        self.warnings = []
        self.files_copied = 0
        self._current = None
        self._member = None

    def copy(self, source, destination, member=None):
        self._member = member
        self._current = []

        if not os.path.lexists(source):
            self._warn(source, SourceUnavailable(source))
        elif os.path.islink(source):
            self._copy_link(source, destination)
        elif os.path.isdir(source):
            self._copy_tree(source, destination)
        elif os.path.isfile(source):
            self._copy_file(source, destination)
        else:
            self._warn(source, CopyEntryFailed(source, 'unsupported file type'))

        current = self._current
        self.warnings.extend(current)
        self._current = None
        return current

    def _warn(self, path, error):
        log.warning("{0}: {1}".format(self._member or path, error))
        self._current.append(CopyWarning(self._member, path, error))

    def _copy_tree(self, source, destination):
        dir_stats = []
        if not self._make_dir(source, destination, dir_stats):
            return

        def onerror(e):
            path = e.filename or source
            self._warn(path, CopyEntryFailed(path, e))

        for dirpath, dirnames, filenames in os.walk(source, topdown=True, onerror=onerror):
            rel = os.path.relpath(dirpath, source)
            target_dir = os.path.normpath(os.path.join(destination, rel))

            # links to directories are listed here but never descended into
            descend = []
            for name in dirnames:
                src = os.path.join(dirpath, name)
                dst = os.path.join(target_dir, name)
                if os.path.islink(src):
                    self._copy_link(src, dst)
                elif self._make_dir(src, dst, dir_stats):
                    descend.append(name)
            dirnames[:] = descend

            for name in filenames:
                src = os.path.join(dirpath, name)
                dst = os.path.join(target_dir, name)
                if os.path.islink(src):
                    self._copy_link(src, dst)
                else:
                    self._copy_file(src, dst)

        for target, src, st in reversed(dir_stats):
            self._apply_metadata(src, target, st)

    def _make_dir(self, src, dst, dir_stats):
        try:
            st = os.stat(src)
            os.makedirs(dst, exist_ok=True)
            # an earlier merge may have left this directory read-only
            if not os.access(dst, os.W_OK | os.X_OK):
                os.chmod(dst, stat.S_IMODE(os.stat(dst).st_mode) | stat.S_IRWXU)
        except OSError as e:
            self._warn(src, CopyEntryFailed(src, e))
            return False

        dir_stats.append((dst, src, st))
        return True

    def _copy_file(self, src, dst):
        try:
            st = os.lstat(src)
            if not stat.S_ISREG(st.st_mode):
                self._warn(src, CopyEntryFailed(src, 'unsupported file type'))
                return
            self._clear_destination(dst)
            shutil.copyfile(src, dst)
        except OSError as e:
            log.debug("Copy of {0} failed: {1}".format(src, [traceback.format_exc()]))
            self._warn(src, CopyEntryFailed(src, e))
            return

        self.files_copied += 1
        self._apply_metadata(src, dst, st)

    def _copy_link(self, src, dst):
        try:
            target = os.readlink(src)
            self._clear_destination(dst)
            os.symlink(target, dst)
        except OSError as e:
            self._warn(src, CopyEntryFailed(src, e))

    @staticmethod
    def _clear_destination(dst):
        # never write through a link, and replace files an earlier merge left read-only
        if os.path.islink(dst) or (os.path.isfile(dst) and not os.access(dst, os.W_OK)):
            os.remove(dst)

    def _apply_metadata(self, src, dst, st):
        # attributes go on while dst is still writable
        if self.preserve_xattrs:
            self._copy_xattrs(src, dst)

        try:
            os.chmod(dst, stat.S_IMODE(st.st_mode))
            os.utime(dst, ns=(st.st_atime_ns, st.st_mtime_ns))
        except OSError as e:
            self._warn(src, CopyEntryFailed(dst, e))

    def _copy_xattrs(self, src, dst):
        try:
            names = listxattr(src)
        except (IOError, OSError) as e:
            log.debug("Could not list extended attributes of {0}: {1}".format(src, e))
            return

        for name in names:
            if name.startswith(_SKIPPED_XATTR_PREFIXES):
                continue
            try:
                setxattr(dst, name, getxattr(src, name))
            except (IOError, OSError) as e:
                self._warn(src, CopyEntryFailed(dst, "extended attribute {0}: {1}".format(name, e)))
