# stratify_api/db/types.py
from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from ..core.timezones import as_utc


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetime column.

    Values are always bound as aware UTC. SQLite may hand them back without an
    offset, so results are normalized to aware UTC on read.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)
