from marshmallow import Schema, fields, validate, EXCLUDE


class StartResponseSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    distribution_id = fields.Str(allow_none=True)
    language_used = fields.Str(allow_none=True, validate=validate.Length(max=10))


class AnswerSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    question_id = fields.Str(required=True, error_messages={"required": "question_id is required"})
    # Any JSON value; its shape depends on the question type
    value = fields.Raw(required=True, allow_none=False,
                       error_messages={"required": "value is required"})


class SubmitSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    answers = fields.List(fields.Nested(AnswerSchema), load_default=list)
