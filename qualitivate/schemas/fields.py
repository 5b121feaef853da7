from datetime import timezone

from marshmallow import fields, ValidationError

from qualitivate.models.types import coerce_json_payload


class JSONPayloadField(fields.Field):
    """
    Accepts a JSON object or array. A string holding an encoded object or
    array is decoded here so the model layer only ever sees structured values.
    """

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            return coerce_json_payload(value)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc


class NaiveUTCDateTime(fields.DateTime):
    """ISO datetime normalized to naive UTC, matching the stored columns."""

    def _deserialize(self, value, attr, data, **kwargs):
        result = super()._deserialize(value, attr, data, **kwargs)
        if result.tzinfo is not None:
            result = result.astimezone(timezone.utc).replace(tzinfo=None)
        return result
