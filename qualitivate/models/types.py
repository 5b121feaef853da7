"""
Column types shared by the models.

``JSONPayload`` is the single (de)serialization point for structured JSON
columns (question options, survey settings, template default settings). The
driver encodes the Python value exactly once on write and decodes it exactly
once on read; ``coerce_json_payload`` makes sure what reaches the driver is a
dict or list and never a pre-encoded string.
"""
import json
import logging

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON, TypeDecorator

logger = logging.getLogger(__name__)

# A legacy writer that double-encoded a value leaves at most a couple of
# string layers around it.
_MAX_UNWRAP = 3


def coerce_json_payload(value, default=None):
    """
    Return ``value`` as a structured JSON value (dict or list).

    None becomes ``default`` (an empty dict unless given). Strings are decoded
    until a dict or list comes out. Anything that is not a JSON object or array
    after unwrapping raises ValueError.
    """
    if value is None:
        return {} if default is None else default

    unwrapped = 0
    while isinstance(value, (str, bytes)):
        if unwrapped >= _MAX_UNWRAP:
            raise ValueError("JSON payload is nested in too many string layers")
        try:
            value = json.loads(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("JSON payload must be an object or an array") from exc
        unwrapped += 1

    if not isinstance(value, (dict, list)):
        raise ValueError("JSON payload must be an object or an array")
    return value


class JSONPayload(TypeDecorator):
    """JSON object/array column (JSONB on Postgres) that never stores a string."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value, dialect):
        return coerce_json_payload(value)

    def process_result_value(self, value, dialect):
        try:
            return coerce_json_payload(value)
        except ValueError:
            logger.warning("Unreadable JSON payload in database, returning empty object",
                           extra={"value": repr(value)[:200]})
            return {}
