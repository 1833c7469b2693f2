import importlib
import os

from cmla.layouts.common.base import (AUTO_LAYOUT, DEFAULT_LAYOUT, SourceEntry,
                                      SourceLayout, available_layouts,
                                      detect_layout, get_layout)

# Import all files containing SourceLayout subclasses so they register.
for layout_file in sorted(os.listdir(os.path.dirname(__file__))):
    if not layout_file.startswith('layout_') or not layout_file.endswith('.py'):
        continue

    full_import = ['cmla', 'layouts', os.path.splitext(layout_file)[0]]

    importlib.import_module('.'.join(full_import))
