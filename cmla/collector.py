'''
@ purpose:

Rebuild a .logarchive bundle from an extracted file tree. The Collector
resolves the archive version, maps the layout's log stores onto bundle
members, merge-copies each of them and writes Info.plist last. It reports
back through a CollectionResult and never exits or prints on its own.

'''

import logging
import os
from datetime import datetime

import pytz

from cmla.errors import (BundleCreationFailed, ManifestWriteFailed,
                         SourceUnavailable, UnknownLayout, UnsupportedVersion)
from cmla.layouts import DEFAULT_LAYOUT, get_layout
from cmla.utils.copier import CopyWarning, MergeCopier
from cmla.utils.functions import glob_all
from cmla.utils.output import ManifestWriter, bundle_path
from cmla.utils.versions import resolve_archive_version

log = logging.getLogger(__name__)

COMPLETED = 'completed'
ABORTED = 'aborted'

STAGE_INIT = 'init'
STAGE_CREATE = 'create'
STAGE_FINALIZE = 'finalize'


class CollectionResult(object):

    def __init__(self, bundle, os_version, archive_version=None, layout=None):
        self.bundle = bundle
        self.os_version = os_version
        self.archive_version = archive_version
        self.layout = layout
        self.warnings = []
        self.manifest = None
        self.status = None
        self.stage = None
        self.error = None

    @property
    def completed(self):
        return self.status == COMPLETED

    def abort(self, stage, error):
        self.status = ABORTED
        self.stage = stage
        self.error = error
        return self

    def __repr__(self):
        return '<CollectionResult {0} {1} warnings={2}>'.format(self.status, self.bundle, len(self.warnings))


class Collector(object):

    def __init__(self, source_root, output_path, os_version, layout=DEFAULT_LAYOUT, time_created=None, preserve_xattrs=True):
        self.source_root = source_root
        self.output_path = output_path
        self.os_version = os_version
        self.layout = layout
        self.time_created = time_created
        self.copier = MergeCopier(preserve_xattrs=preserve_xattrs)

    def run(self):
        result = CollectionResult(bundle_path(self.output_path), self.os_version)
        start_time = datetime.now(pytz.UTC)

        # Init: nothing touches the filesystem until both of these are known.
        try:
            result.archive_version = resolve_archive_version(self.os_version)
            layout = get_layout(self.layout, self.source_root)
        except (UnsupportedVersion, UnknownLayout) as e:
            log.debug("Aborting before collection: {0}".format(e))
            return result.abort(STAGE_INIT, e)

        result.layout = layout.layout_name()
        log.debug("macOS {0} maps to OSArchiveVersion={1}.".format(self.os_version, result.archive_version))
        log.info("Using {0} source layout for {1}.".format(result.layout, self.source_root))

        try:
            os.makedirs(result.bundle, exist_ok=True)
        except OSError as e:
            error = BundleCreationFailed(result.bundle, e)
            log.debug("Aborting, bundle not created: {0}".format(error))
            return result.abort(STAGE_CREATE, error)

        log.info("Creating .logarchive at {0}".format(result.bundle))
        for entry in layout.build(self.source_root):
            result.warnings.extend(self._collect(entry, result.bundle))

        try:
            result.manifest = ManifestWriter(self.os_version, result.archive_version).write(result.bundle, self.time_created)
        except ManifestWriteFailed as e:
            log.debug("Aborting, manifest not written: {0}".format(e))
            return result.abort(STAGE_FINALIZE, e)

        result.status = COMPLETED
        log.debug("Collection finished in {0}: {1} files copied, {2} warnings.".format(
            datetime.now(pytz.UTC) - start_time, self.copier.files_copied, len(result.warnings)))
        return result

    def _collect(self, entry, bundle):
        if not entry.is_wildcard:
            dst = os.path.join(bundle, entry.member)
            log.info("Copying {0} -> {1}".format(entry.pattern, dst))
            return self.copier.copy(entry.pattern, dst, member=entry.member)

        matches = glob_all(entry.pattern)
        if len(matches) == 0:
            log.warning("{0}: no matches for {1}".format(entry.member, entry.pattern))
            return [CopyWarning(entry.member, entry.pattern, SourceUnavailable(entry.pattern))]

        warnings = []
        for match in matches:
            dst = os.path.join(bundle, os.path.basename(match))
            log.info("Copying (wildcard) {0} -> {1}".format(match, dst))
            warnings.extend(self.copier.copy(match, dst, member=entry.member))
        return warnings
