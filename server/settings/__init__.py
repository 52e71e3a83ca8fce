"""Project settings.

Settings are split into components which are combined here
with ``django-split-settings``. Environment specific values are
read with ``python-decouple`` inside each component.
"""

from split_settings.tools import include

include(
    'components/common.py',
    'components/logging.py',
    'components/storages.py',
    'components/library.py',
)
