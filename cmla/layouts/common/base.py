import glob
import os
from collections import namedtuple

from cmla.errors import UnknownLayout


SourceEntry = namedtuple('SourceEntry', ['member', 'pattern', 'is_wildcard'])


class LayoutRegistry(type):

    _layouts = {}

    def __new__(mcs, name, bases, class_dict):
        cls = type.__new__(mcs, name, bases, class_dict)
        LayoutRegistry.register(cls)
        return cls

    @classmethod
    def register(cls, value):
        name = value.layout_name()
        # Prevent registering unnamed layouts (including the SourceLayout base class)
        if not name:
            return

        if name in cls._layouts:
            error = '{} layout already exists'.format(name)
            raise ValueError(error)

        cls._layouts[name] = value

    @classmethod
    def layouts(cls):
        return cls._layouts


class SourceLayout(object, metaclass=LayoutRegistry):
    """Where the unified logging stores sit inside an extracted file tree.

    Subclasses declare _members as (member name, suffix, is_wildcard) rows.
    Suffixes use forward slashes and are relative to the source root. Wildcard
    rows are glob patterns; each match is copied to the bundle under its own
    base name instead of the member name.
    """

    _layout_filename = ''
    _description = ''
    _members = ()

    @classmethod
    def layout_name(cls):
        if not cls._layout_filename:
            return cls._layout_filename

        return cls._layout_filename.split('_')[-1]

    @classmethod
    def description(cls):
        return cls._description

    @classmethod
    def members(cls):
        return tuple(cls._members)

    @classmethod
    def build(cls, source_root):
        """Join every suffix in the table onto source_root, preserving order.
        """
        mapping = []
        seen = set()
        for member, suffix, is_wildcard in cls._members:
            if member in seen:
                raise ValueError('{0} layout maps {1} twice'.format(cls.layout_name(), member))
            seen.add(member)
            root = glob.escape(source_root) if is_wildcard else source_root
            pattern = os.path.join(root, *suffix.split('/'))
            mapping.append(SourceEntry(member, pattern, is_wildcard))

        return tuple(mapping)

    @classmethod
    def matches(cls, source_root):
        """True if source_root looks like it was extracted with this layout.
        """
        return False


DEFAULT_LAYOUT = 'flat'
AUTO_LAYOUT = 'auto'


def available_layouts():
    return LayoutRegistry.layouts()


def get_layout(name, source_root=None):
    """Look up a registered layout by name.

    'auto' picks the first registered layout (other than the default) whose
    matches() accepts source_root, falling back to the default layout.
    """
    layouts = available_layouts()
    if name == AUTO_LAYOUT:
        return detect_layout(source_root)
    if name not in layouts:
        raise UnknownLayout(name, list(layouts.keys()) + [AUTO_LAYOUT])
    return layouts[name]


def detect_layout(source_root):
    layouts = available_layouts()
    for name in sorted(layouts):
        if name == DEFAULT_LAYOUT:
            continue
        if source_root and layouts[name].matches(source_root):
            return layouts[name]
    return layouts[DEFAULT_LAYOUT]
