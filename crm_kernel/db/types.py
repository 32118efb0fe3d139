"""
Module: crm_kernel.db.types
Responsibility: Portable column types and value checks shared by every ORM
    model and by configuration validation.
Architecture position: Kernel > DB.  MUST NOT import from domain/, engines or
    modules.

Invariants enforced:
    - UTCDateTime always hands back timezone-aware UTC datetimes, even on
      backends (SQLite) that store naive values.
    - Currency tags are three upper-case letters.  They are carried
      through, never converted.
"""

import re
from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

CURRENCY_CODE_LENGTH = 3

_CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


def is_currency_code(value: str | None) -> bool:
    """True for a three-letter upper-case tag such as ``"USD"``."""
    return isinstance(value, str) and _CURRENCY_PATTERN.match(value) is not None


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored in UTC.

    Naive datetimes passed in are assumed to already be UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
