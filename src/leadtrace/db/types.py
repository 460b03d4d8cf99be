"""Custom SQLAlchemy column types."""

import json

from sqlalchemy import Text, TypeDecorator


class JSONType(TypeDecorator):
    """One snapshot record per row, kept as compact JSON text.

    The value is the camelCase dump of a whole site, visitor, event or
    tracked link. Non-ASCII text (city names, page titles) is written
    as-is rather than escaped.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return json.loads(value)
