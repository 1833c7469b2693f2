import os
import shutil
from tempfile import mkdtemp

# A small flat-layout source tree: relative path -> file content.
SOURCE_FILES = {
    'var/db/diagnostics/Persist/0000000000000001.tracev3': b'persist-1',
    'var/db/diagnostics/Special/0000000000000002.tracev3': b'special-2',
    'var/db/diagnostics/timesync/0000000000000003.timesync': b'timesync-3',
    'var/db/diagnostics/version.plist': b'<plist/>',
    'var/db/uuidtext/0A/1B2C3D4E5F60718293A4B5C6D7E8F9A': b'uuidtext-a',
    'var/db/uuidtext/FF/00112233445566778899AABBCCDDEEFF': b'uuidtext-f',
    'var/db/uuidtext/dsc/8E5F9C9D6A4B3C2D1E0F112233445566': b'dsc',
    'var/db/logd/streams/live.stream': b'streaming',
    'var/db/logd/logd.state': b'state',
    'var/log/system.log': b'Jan  1 00:00:00 host kernel[0]: boot\n',
    'var/log/DiagnosticMessages/2023.01.01.asl': b'asl',
    'Library/Logs/DiagnosticReports/crash.ips': b'crash',
}


def write_tree(root, files):
    for rel, content in files.items():
        path = os.path.join(root, *rel.split('/'))
        if not os.path.isdir(os.path.dirname(path)):
            os.makedirs(os.path.dirname(path))
        with open(path, 'wb') as f:
            f.write(content)


def read_tree(root):
    """Map every regular file under root to its content, keyed by relative path.
    """
    out = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in filenames:
            path = os.path.join(dirpath, name)
            if os.path.islink(path):
                continue
            with open(path, 'rb') as f:
                out[os.path.relpath(path, root).replace(os.sep, '/')] = f.read()
    return out


class TempDirMixin(object):

    def make_tempdir(self):
        path = mkdtemp(prefix='cmla-test-')
        self.addCleanup(_force_rmtree, path)
        return path


def _force_rmtree(path):
    # copied trees may carry read-only permission bits
    for dirpath, dirnames, filenames in os.walk(path):
        for name in dirnames:
            full = os.path.join(dirpath, name)
            if not os.path.islink(full):
                os.chmod(full, 0o755)
    shutil.rmtree(path, ignore_errors=True)
