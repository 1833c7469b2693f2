#!/usr/bin/env python

'''
@ purpose:

Source layout for trees that mirror a whole mounted volume, where the
log stores sit under private/var and the var symlink was not followed.

user_logs is the volume-wide Library/Logs only. Per-user
Users/*/Library/Logs directories are not collected: each would land under
the same member name and overwrite the others in the bundle.

'''

import os

from cmla.layouts.common.base import SourceLayout


class PrivateLayout(SourceLayout):
    _layout_filename = __name__
    _description = 'full volume mirror with log stores under private/var (user_logs is Library/Logs, not Users/*/Library/Logs)'

    _members = (
        ('diagnostics', 'private/var/db/diagnostics/*', True),
        ('uuidtext', 'private/var/db/uuidtext/*', True),
        ('timesync', 'private/var/db/diagnostics/timesync', False),
        ('system_logs', 'private/var/log', False),
        ('user_logs', 'Library/Logs', False),
        ('live', 'private/var/db/logd/streams', False),
        ('LogStoreMetadata', 'private/var/db/logd', False),
        ('network', 'private/var/log/DiagnosticMessages', False),
    )

    @classmethod
    def matches(cls, source_root):
        return os.path.isdir(os.path.join(source_root, 'private', 'var'))
