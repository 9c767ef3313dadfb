"""Expose commonly used ORM models at package level.

These re-exports are intentional so callers can import from
``models`` (e.g. `from models import Project`). The `F401` noqa suppresses
unused-import warnings for the explicit re-exports.
"""

from .documents import Document  # noqa: F401
from .generated_files import GeneratedFile  # noqa: F401
from .projects import Project  # noqa: F401
