'''

@ purpose:

Helper functions for repeated use across the collector and the CLI.

'''

import glob
import logging
import os
from datetime import datetime

import pytz
from dateutil import parser

log = logging.getLogger(__name__)


def finditem(obj, key):
    """Return value of a key from a nested dictionary-like object.
    """
    if key in obj:
        return obj[key]
    for k, v in obj.items():
        if isinstance(v, dict):
            item = finditem(v, key)
            if item is not None:
                return item


def strip_trailing_slash(path):
    """Remove a trailing separator, leaving a bare root untouched.
    """
    if path and len(path) > 1 and path[-1] == os.sep:
        return path.rstrip(os.sep) or os.sep
    return path


def to_utc(timestamp):
    """Normalise a datetime to a naive UTC datetime with second precision.
    Naive input is taken to already be UTC.
    """
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(pytz.UTC).replace(tzinfo=None)
    return timestamp.replace(microsecond=0)


def parse_timestamp(value):
    """Parse an operator supplied timestamp string into naive UTC.
    Raises ValueError if the string is not a recognisable date.
    """
    try:
        parsed = parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise ValueError("could not parse timestamp '{0}': {1}".format(value, e))
    return to_utc(parsed)


def utcnow():
    return to_utc(datetime.now(pytz.UTC))


def glob_all(pattern):
    """Sorted glob matches, including dot-entries a leading '*' would skip.
    """
    matches = set(glob.glob(pattern))
    head, tail = os.path.split(pattern)
    if tail.startswith('*'):
        matches.update(glob.glob(os.path.join(head, '.' + tail)))
    return sorted(matches)
