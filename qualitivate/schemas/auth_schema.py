from marshmallow import Schema, fields, validates, ValidationError, EXCLUDE
import re


def check_password_strength(value):
    """
    Validate password strength

    Requirements:
    - Minimum 8 characters
    - At least 1 uppercase letter
    - At least 1 number

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(value) < 8:
        raise ValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', value):
        raise ValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'\d', value):
        raise ValidationError("Password must contain at least one number")


class RegisterSchema(Schema):
    """
    Registration Request Validation Schema

    Validates self-service sign-up input:
    - Email must be valid format
    - Password must be strong (min 8 chars, 1 uppercase, 1 number)
    - Names required

    Example:
        schema = RegisterSchema()
        result = schema.load(request_data)
    """
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, error_messages={
        "required": "Email is required",
        "invalid": "Invalid email format"
    })

    password = fields.Str(required=True, error_messages={
        "required": "Password is required"
    })

    first_name = fields.Str(required=True, error_messages={
        "required": "First name is required"
    })

    last_name = fields.Str(required=True, error_messages={
        "required": "Last name is required"
    })

    @validates('password')
    def validate_password(self, value, **kwargs):
        check_password_strength(value)

    @validates('first_name')
    def validate_first_name(self, value, **kwargs):
        if not value.strip():
            raise ValidationError("First name cannot be empty")


class LoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, error_messages={"required": "Email is required"})
    password = fields.Str(required=True, error_messages={"required": "Password is required"})
