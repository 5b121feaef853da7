from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from qualitivate.api.guards import current_actor
from qualitivate.api.pagination import paginate
from qualitivate.schemas.organization_schema import (
    UserInviteSchema, BulkUsersSchema, UserUpdateSchema,
)
from qualitivate.services import organization

bp = Blueprint('users', __name__)

invite_schema = UserInviteSchema()
bulk_schema = BulkUsersSchema()
update_schema = UserUpdateSchema()


@bp.route('', methods=['GET'])
@jwt_required()
def list_users():
    """
    List users inside the caller's scope (admins only).

    Query Parameters:
        - role, site_id, department_id: exact filters
        - search: substring of email, first or last name
        - page, limit
    """
    query = organization.list_users(
        current_actor(),
        role=request.args.get('role'),
        site_id=request.args.get('site_id'),
        department_id=request.args.get('department_id'),
        search=request.args.get('search'),
    )
    return jsonify(paginate(query, lambda u: u.to_dict())), 200


@bp.route('/<user_id>', methods=['GET'])
@jwt_required()
def get_user(user_id):
    user = organization.get_user(current_actor(), user_id)
    return jsonify(user.to_dict()), 200


@bp.route('', methods=['POST'])
@jwt_required()
def invite_user():
    data = invite_schema.load(request.get_json() or {})
    user = organization.invite_user(current_actor(), data)
    return jsonify(user.to_dict()), 201


@bp.route('/bulk', methods=['POST'])
@jwt_required()
def bulk_create_users():
    """
    Create up to MAX_BULK_USERS users. Bad rows are reported in "failed"
    and do not stop the rest of the batch.
    """
    data = bulk_schema.load(request.get_json() or {})
    result = organization.bulk_create_users(current_actor(), data['users'], invite_schema)
    status = 201 if result["created"] else 200
    return jsonify(result), status


@bp.route('/<user_id>', methods=['PUT'])
@jwt_required()
def update_user(user_id):
    data = update_schema.load(request.get_json() or {})
    user = organization.update_user(current_actor(), user_id, data)
    return jsonify(user.to_dict()), 200


@bp.route('/<user_id>', methods=['DELETE'])
@jwt_required()
def delete_user(user_id):
    organization.delete_user(current_actor(), user_id)
    return jsonify({"message": "User deleted"}), 200
