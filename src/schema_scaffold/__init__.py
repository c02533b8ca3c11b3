"""Reverse-engineer PostgreSQL schemas into an in-memory model for code generation."""

from .base.models import DatabaseModel
from .factory import DatabaseModelFactory

__version__ = "0.1.0"

__all__ = [
    "DatabaseModel",
    "DatabaseModelFactory",
    "__version__",
]
