from flask import Blueprint, request, jsonify, current_app
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import (
    create_access_token, create_refresh_token, jwt_required, current_user,
)

from qualitivate.extensions import db
from qualitivate.errors import AuthenticationError, ConflictError
from qualitivate.models.user import User
from qualitivate.schemas.auth_schema import RegisterSchema, LoginSchema

# Create Blueprint
bp = Blueprint('auth', __name__)

# Initialize schemas
register_schema = RegisterSchema()
login_schema = LoginSchema()


def _issue_tokens(user):
    access_token = create_access_token(
        identity=user.user_id,
        additional_claims=user.token_claims()
    )
    refresh_token = create_refresh_token(identity=user.user_id)
    return access_token, refresh_token


@bp.route('/register', methods=['POST'])
def register():
    """
    User Registration Endpoint

    Creates a plain 'user' account with no company. Admins place users in a
    tenant through /api/users instead.

    Request Body:
        {
            "email": "user@example.com",
            "password": "SecurePass123",
            "first_name": "John",
            "last_name": "Doe"
        }

    Returns:
        201: Registration successful with JWT tokens
        400: Validation error
        409: Email already registered
    """
    # Step 1: Validate data (ValidationError -> 400)
    validated_data = register_schema.load(request.get_json() or {})
    email = validated_data['email'].strip().lower()

    # Step 2: Check if email already registered
    if User.query.filter_by(email=email).first():
        raise ConflictError("Email already registered")

    # Step 3: Create user
    user = User(
        email=email,
        password_hash=generate_password_hash(validated_data['password']),
        first_name=validated_data['first_name'].strip(),
        last_name=validated_data['last_name'].strip(),
        company_id=None,
        role='user',
        is_active=True
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"Registered user {user.user_id}")

    # Step 4: Generate JWT tokens
    access_token, refresh_token = _issue_tokens(user)

    return jsonify({
        "message": "Registration successful",
        "user": user.to_dict(),
        "access_token": access_token,
        "refresh_token": refresh_token
    }), 201


@bp.route('/login', methods=['POST'])
def login():
    """
    Login Endpoint

    Responses:
      200 Login successful
      400 Missing fields
      401 Wrong credentials or inactive account
    """
    data = login_schema.load(request.get_json() or {})

    # Step 1: Lookup user
    user = User.query.filter_by(email=data['email'].strip().lower()).first()

    # Step 2: Verify password
    if not user or not check_password_hash(user.password_hash, data['password']):
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthenticationError("Account is disabled")

    # Step 3: Create JWT tokens
    access_token, refresh_token = _issue_tokens(user)

    return jsonify({
        "message": "Login successful",
        "user": user.to_dict(),
        "access_token": access_token,
        "refresh_token": refresh_token
    }), 200


@bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Exchange a refresh token for a new access token with current claims."""
    access_token = create_access_token(
        identity=current_user.user_id,
        additional_claims=current_user.token_claims()
    )
    return jsonify({"access_token": access_token}), 200


@bp.route('/me', methods=['GET'])
@jwt_required()
def me():
    return jsonify({"user": current_user.to_dict()}), 200
