"""corechecks – stateful system metric checks."""

__version__ = "0.1.0"
