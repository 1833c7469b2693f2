import logging
import os
import plistlib
from collections import OrderedDict

from cmla.errors import ManifestWriteFailed
from cmla.utils.functions import to_utc, utcnow

log = logging.getLogger(__name__)

BUNDLE_SUFFIX = '.logarchive'
MANIFEST_NAME = 'Info.plist'
LOG_ARCHIVE_VERSION = 1


def bundle_path(output_path):
    """Append the .logarchive suffix to output_path unless it is already there.
    """
    if output_path.endswith(os.sep):
        output_path = output_path.rstrip(os.sep)
    if not output_path.endswith(BUNDLE_SUFFIX):
        output_path += BUNDLE_SUFFIX
    return output_path


# Establish ManifestWriter class to render the Info.plist at the bundle root.
class ManifestWriter(object):

    def __init__(self, os_version, archive_version):
        self.os_version = os_version
        self.archive_version = archive_version

    def descriptor(self, timestamp=None):
        if timestamp is None:
            timestamp = utcnow()

        return OrderedDict([
            ('OSVersion', 'macOS {0}'.format(self.os_version)),
            ('LogArchiveVersion', LOG_ARCHIVE_VERSION),
            ('OSArchiveVersion', self.archive_version),
            ('Collected', True),
            ('TimeCreated', to_utc(timestamp)),
        ])

    def render(self, timestamp=None):
        return plistlib.dumps(self.descriptor(timestamp), fmt=plistlib.FMT_XML, sort_keys=False)

    def write(self, bundle, timestamp=None):
        manifest = os.path.join(bundle, MANIFEST_NAME)
        try:
            data = self.render(timestamp)
        except (TypeError, ValueError) as e:
            raise ManifestWriteFailed(manifest, e)

        try:
            with open(manifest, 'wb') as f:
                f.write(data)
        except (IOError, OSError) as e:
            raise ManifestWriteFailed(manifest, e)

        log.debug("Wrote {0} (OSArchiveVersion={1}).".format(manifest, self.archive_version))
        return manifest
