# contentops/models/__init__.py
from contentops.db.base import Base  # noqa: F401

from . import admin       # noqa: F401
from . import client      # noqa: F401
from . import assignment  # noqa: F401
