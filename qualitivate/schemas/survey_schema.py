"""
Survey, template and question payload schemas.

Templates and surveys share the question shape, so both go through
``QuestionSchema``; per-type option checks live there too.
"""
from marshmallow import Schema, fields, validate, validates_schema, ValidationError, EXCLUDE

from qualitivate.schemas.fields import JSONPayloadField, NaiveUTCDateTime

SURVEY_TYPES = ('nps', 'custom')
SURVEY_STATUSES = ('draft', 'active', 'closed')
QUESTION_TYPES = ('nps', 'multiple_choice', 'text_short', 'text_long', 'rating_scale', 'matrix')


def _not_blank(value):
    if not value or not value.strip():
        raise ValidationError("Field cannot be empty")


def validate_question_options(question_type, options):
    """Raise ValidationError when ``options`` do not fit ``question_type``."""
    if not isinstance(options, dict):
        return

    if question_type == 'multiple_choice' and 'choices' in options:
        choices = options['choices']
        if not isinstance(choices, list) or not choices:
            raise ValidationError({"options": ["choices must be a non-empty list"]})
        keys = [repr(c) for c in choices]
        if len(set(keys)) != len(keys):
            raise ValidationError({"options": ["choices must be unique"]})

    if question_type == 'rating_scale' and 'min' in options and 'max' in options:
        low, high = options['min'], options['max']
        numeric = (int, float)
        if isinstance(low, bool) or isinstance(high, bool) or not isinstance(low, numeric) or not isinstance(high, numeric):
            raise ValidationError({"options": ["min and max must be numbers"]})
        if low >= high:
            raise ValidationError({"options": ["min must be less than max"]})

    if question_type == 'matrix':
        for key in ('rows', 'columns'):
            if key in options and not isinstance(options[key], list):
                raise ValidationError({"options": [f"{key} must be a list"]})


class QuestionSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    type = fields.Str(required=True, validate=validate.OneOf(QUESTION_TYPES),
                      error_messages={"required": "Question type is required"})
    content = fields.Str(required=True, validate=_not_blank,
                         error_messages={"required": "Question content is required"})
    options = JSONPayloadField(load_default=dict)
    is_required = fields.Bool(load_default=False)
    order_index = fields.Int(validate=validate.Range(min=0))

    @validates_schema
    def validate_options(self, data, **kwargs):
        validate_question_options(data.get('type'), data.get('options'))


class QuestionUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    type = fields.Str(validate=validate.OneOf(QUESTION_TYPES))
    content = fields.Str(validate=_not_blank)
    options = JSONPayloadField()
    is_required = fields.Bool()


class ReorderSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    question_ids = fields.List(fields.Str(), required=True,
                               error_messages={"required": "question_ids is required"})


class TemplateCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=[_not_blank, validate.Length(max=255)],
                      error_messages={"required": "Name is required"})
    description = fields.Str(allow_none=True)
    category = fields.Str(allow_none=True, validate=validate.Length(max=100))
    type = fields.Str(load_default='custom', validate=validate.OneOf(SURVEY_TYPES))
    is_global = fields.Bool(load_default=False)
    is_anonymous = fields.Bool(load_default=True)
    default_settings = JSONPayloadField(load_default=dict)
    company_id = fields.Str(allow_none=True)
    questions = fields.List(fields.Nested(QuestionSchema), load_default=list)


class TemplateUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=[_not_blank, validate.Length(max=255)])
    description = fields.Str(allow_none=True)
    category = fields.Str(allow_none=True, validate=validate.Length(max=100))
    type = fields.Str(validate=validate.OneOf(SURVEY_TYPES))
    is_anonymous = fields.Bool()
    default_settings = JSONPayloadField()
    # Present means "replace the whole question list"
    questions = fields.List(fields.Nested(QuestionSchema))


class CreateFromTemplateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    title = fields.Str(validate=[_not_blank, validate.Length(max=500)])
    description = fields.Str(allow_none=True)
    company_id = fields.Str(allow_none=True)


class SaveAsTemplateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=[_not_blank, validate.Length(max=255)])
    description = fields.Str(allow_none=True)
    category = fields.Str(allow_none=True, validate=validate.Length(max=100))
    is_global = fields.Bool(load_default=False)


class SurveyCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    title = fields.Str(required=True, validate=[_not_blank, validate.Length(max=500)],
                       error_messages={"required": "Title is required"})
    description = fields.Str(allow_none=True)
    type = fields.Str(load_default='custom', validate=validate.OneOf(SURVEY_TYPES))
    is_public = fields.Bool(load_default=False)
    is_anonymous = fields.Bool(load_default=False)
    default_language = fields.Str(load_default='en', validate=validate.Length(min=2, max=10))
    settings = JSONPayloadField(load_default=dict)
    starts_at = NaiveUTCDateTime(allow_none=True)
    ends_at = NaiveUTCDateTime(allow_none=True)
    company_id = fields.Str(allow_none=True)
    questions = fields.List(fields.Nested(QuestionSchema), load_default=list)

    @validates_schema
    def validate_window(self, data, **kwargs):
        starts_at, ends_at = data.get('starts_at'), data.get('ends_at')
        if starts_at and ends_at and starts_at > ends_at:
            raise ValidationError({"ends_at": ["ends_at must not be before starts_at"]})


class SurveyUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    title = fields.Str(validate=[_not_blank, validate.Length(max=500)])
    description = fields.Str(allow_none=True)
    type = fields.Str(validate=validate.OneOf(SURVEY_TYPES))
    status = fields.Str(validate=validate.OneOf(SURVEY_STATUSES))
    is_public = fields.Bool()
    is_anonymous = fields.Bool()
    default_language = fields.Str(validate=validate.Length(min=2, max=10))
    settings = JSONPayloadField()
    starts_at = NaiveUTCDateTime(allow_none=True)
    ends_at = NaiveUTCDateTime(allow_none=True)
