"""Log filters for static context fields."""

import logging
from typing import Dict, Any


class ExtraFieldsFilter(logging.Filter):
    """
    Filter that adds extra static fields to all log records.

    Useful for adding environment, service name, version, etc.
    Fields already present on the record (e.g. span fields) win.

    Example:
        >>> handler.addFilter(ExtraFieldsFilter({"service": "billing"}))
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = dict(extra_fields)

    def filter(self, record: logging.LogRecord) -> bool:
        """Add extra fields to record."""
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
