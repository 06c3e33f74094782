"""Night Story: bedtime stories with a matching cover illustration."""

__version__ = "0.1.0"
