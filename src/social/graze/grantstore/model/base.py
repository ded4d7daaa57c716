from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, orm
from sqlalchemy.orm import mapped_column
from sqlalchemy.types import TypeDecorator

from typing_extensions import Annotated


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp that always comes back in UTC.

    SQLite stores DateTime values without an offset, so values read from it
    are naive. Values are normalised to UTC on the way in and tagged as UTC
    on the way out, which keeps expiry comparisons working on every backend.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: Optional[datetime], dialect
    ) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime values are not accepted")
        return value.astimezone(timezone.utc)

    def process_result_value(
        self, value: Optional[datetime], dialect
    ) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


str512 = Annotated[str, 512]
str1024 = Annotated[str, 1024]
tokenpk = Annotated[str, mapped_column(String(512), primary_key=True)]


class Base(orm.DeclarativeBase):
    type_annotation_map = {
        str512: String(512),
        str1024: String(1024),
        tokenpk: String(512),
        datetime: UTCDateTime(),
    }
