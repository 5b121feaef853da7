from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from qualitivate.api.guards import current_actor
from qualitivate.api.pagination import paginate
from qualitivate.schemas.organization_schema import DepartmentSchema, DepartmentUpdateSchema
from qualitivate.services import organization

bp = Blueprint('departments', __name__)

department_schema = DepartmentSchema()
department_update_schema = DepartmentUpdateSchema()


@bp.route('', methods=['GET'])
@jwt_required()
def list_departments():
    query = organization.list_departments(
        current_actor(),
        site_id=request.args.get('site_id'),
        search=request.args.get('search'),
    )
    return jsonify(paginate(query, lambda d: d.to_dict())), 200


@bp.route('/<department_id>', methods=['GET'])
@jwt_required()
def get_department(department_id):
    department = organization.get_department(current_actor(), department_id)
    return jsonify(department.to_dict()), 200


@bp.route('', methods=['POST'])
@jwt_required()
def create_department():
    data = department_schema.load(request.get_json() or {})
    department = organization.create_department(current_actor(), data)
    return jsonify(department.to_dict()), 201


@bp.route('/<department_id>', methods=['PUT'])
@jwt_required()
def update_department(department_id):
    data = department_update_schema.load(request.get_json() or {})
    department = organization.update_department(current_actor(), department_id, data)
    return jsonify(department.to_dict()), 200


@bp.route('/<department_id>', methods=['DELETE'])
@jwt_required()
def delete_department(department_id):
    organization.delete_department(current_actor(), department_id)
    return jsonify({"message": "Department deleted"}), 200
