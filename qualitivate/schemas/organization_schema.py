from marshmallow import Schema, fields, validate, validates, ValidationError, EXCLUDE
import re

from qualitivate.schemas.auth_schema import check_password_strength
from qualitivate.schemas.fields import JSONPayloadField
from qualitivate.services.access_policy import ROLES

SLUG_PATTERN = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')


def _not_blank(value):
    if not value or not value.strip():
        raise ValidationError("Field cannot be empty")


class CompanyCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=[_not_blank, validate.Length(max=255)],
                      error_messages={"required": "Name is required"})
    slug = fields.Str(required=True, error_messages={"required": "Slug is required"})
    activity = fields.Str(allow_none=True)
    address = fields.Str(allow_none=True)
    city = fields.Str(allow_none=True)
    sites_count = fields.Int(allow_none=True, validate=validate.Range(min=0))
    employees_count = fields.Int(allow_none=True, validate=validate.Range(min=0))
    settings = JSONPayloadField(allow_none=True)

    @validates('slug')
    def validate_slug(self, value, **kwargs):
        if not SLUG_PATTERN.match(value):
            raise ValidationError("Slug may only contain lowercase letters, digits and single hyphens")
        if len(value) > 100:
            raise ValidationError("Slug must be less than 100 characters")


class CompanyUpdateSchema(CompanyCreateSchema):
    name = fields.Str(validate=[_not_blank, validate.Length(max=255)])
    slug = fields.Str()


class SiteSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=[_not_blank, validate.Length(max=255)],
                      error_messages={"required": "Name is required"})
    location = fields.Str(allow_none=True)
    company_id = fields.Str(allow_none=True)


class SiteUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=[_not_blank, validate.Length(max=255)])
    location = fields.Str(allow_none=True)


class DepartmentSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=[_not_blank, validate.Length(max=255)],
                      error_messages={"required": "Name is required"})
    site_id = fields.Str(required=True, error_messages={"required": "Site is required"})


class DepartmentUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=[_not_blank, validate.Length(max=255)])


class UserInviteSchema(Schema):
    """
    User creation by an admin.

    company_id/site_id/department_id are only honoured where the caller's own
    scope allows it; the service forces the caller's placement otherwise.
    """
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, error_messages={
        "required": "Email is required",
        "invalid": "Invalid email format"
    })
    password = fields.Str(required=True, error_messages={"required": "Password is required"})
    first_name = fields.Str(load_default='')
    last_name = fields.Str(load_default='')
    role = fields.Str(load_default='user', validate=validate.OneOf(ROLES))
    company_id = fields.Str(allow_none=True)
    site_id = fields.Str(allow_none=True)
    department_id = fields.Str(allow_none=True)

    @validates('password')
    def validate_password(self, value, **kwargs):
        check_password_strength(value)


class BulkUsersSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    # Rows are validated one at a time so a bad row never sinks the batch
    users = fields.List(fields.Dict(), required=True, validate=validate.Length(min=1),
                        error_messages={"required": "users list is required"})


class UserUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    first_name = fields.Str()
    last_name = fields.Str()
    role = fields.Str(validate=validate.OneOf(ROLES))
    is_active = fields.Bool()
    site_id = fields.Str(allow_none=True)
    department_id = fields.Str(allow_none=True)
