"""Built-in system checks. Importing this package registers them."""

from . import cpu, memory  # noqa: F401
