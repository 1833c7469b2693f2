'''
@ purpose:

Map a macOS product version onto the OSArchiveVersion recorded in a
logarchive's Info.plist, and read the product version from an extracted
volume when the operator does not supply one.

'''

import logging
import os
import plistlib
import re
import traceback

from cmla.errors import UnsupportedVersion
from cmla.utils.functions import finditem

log = logging.getLogger(__name__)

SYSTEM_VERSION_PLIST = 'System/Library/CoreServices/SystemVersion.plist'

# Characters an XML plist string cannot hold; the version is written verbatim.
_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

# Buckets as recorded by live `log collect` runs on each release.
_PREFIX_VERSIONS = (
    (('10.12', '10.13'), 3),
    (('10.14', '10.15'), 4),
)
_MAJOR_VERSIONS = {
    '12': 5,
    '13': 5,
    '14': 5,
    '15': 5,
    '16': 5,
}


def resolve_archive_version(os_version):
    """Return the OSArchiveVersion for a macOS version string.

    Matching is done on the version prefix (10.x releases) or the major
    version token (12 onwards), never by numeric comparison. Anything not
    recognised raises UnsupportedVersion carrying the original input.
    """
    if not os_version or _XML_ILLEGAL.search(os_version):
        raise UnsupportedVersion(os_version)

    v = os_version.strip()
    for prefixes, archive_version in _PREFIX_VERSIONS:
        if v.startswith(prefixes):
            return archive_version

    major = v.split('.')[0]
    if major in _MAJOR_VERSIONS:
        return _MAJOR_VERSIONS[major]

    raise UnsupportedVersion(os_version)


def supported_versions():
    """List the version prefixes that resolve, for help and error output.
    """
    out = []
    for prefixes, archive_version in _PREFIX_VERSIONS:
        out.extend((p, archive_version) for p in prefixes)
    out.extend(sorted(_MAJOR_VERSIONS.items(), key=lambda i: int(i[0])))
    return out


def read_product_version(inputdir, inputsysdir=None):
    """Read ProductVersion from SystemVersion.plist in the extracted tree.

    On 10.15+ images the plist lives on the system volume rather than the data
    volume, so inputsysdir is tried second. Returns None if neither is usable.
    """
    for root in [inputdir, inputsysdir]:
        if not root:
            continue
        plist_path = os.path.join(root, SYSTEM_VERSION_PLIST)
        try:
            with open(plist_path, 'rb') as pslistfile:
                systemversion = plistlib.load(pslistfile)
        except (IOError, OSError):
            log.debug("No SystemVersion.plist at {0}".format(plist_path))
            continue
        except Exception:
            log.error("Could not parse {0}: {1}".format(plist_path, [traceback.format_exc()]))
            continue

        os_version = finditem(systemversion, 'ProductVersion')
        if os_version:
            log.debug("Got OSVersion: {0} from {1}".format(os_version, plist_path))
            return os_version

    return None
