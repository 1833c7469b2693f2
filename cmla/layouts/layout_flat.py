#!/usr/bin/env python

'''
@ purpose:

Source layout for trees exported from the data volume with var/ and
Library/ directly beneath the root, as produced by most logical images
and backups.

'''

from cmla.layouts.common.base import SourceLayout


class FlatLayout(SourceLayout):
    _layout_filename = __name__
    _description = 'var/ and Library/ directly under the input directory'

    _members = (
        ('diagnostics', 'var/db/diagnostics/*', True),
        ('uuidtext', 'var/db/uuidtext/*', True),
        ('timesync', 'var/db/diagnostics/timesync', False),
        ('system_logs', 'var/log', False),
        ('user_logs', 'Library/Logs', False),
        ('live', 'var/db/logd/streams', False),
        ('LogStoreMetadata', 'var/db/logd', False),
        ('network', 'var/log/DiagnosticMessages', False),
    )
