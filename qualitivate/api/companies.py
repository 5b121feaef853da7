from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from qualitivate.api.guards import current_actor, roles_required
from qualitivate.api.pagination import paginate
from qualitivate.schemas.organization_schema import CompanyCreateSchema, CompanyUpdateSchema
from qualitivate.services import organization

bp = Blueprint('companies', __name__)

create_schema = CompanyCreateSchema()
update_schema = CompanyUpdateSchema()


@bp.route('', methods=['GET'])
@jwt_required()
def list_companies():
    """
    List companies visible to the caller.

    Query Parameters:
        - search: substring of the company name
        - page, limit
    """
    query = organization.list_companies(current_actor(), search=request.args.get('search'))
    return jsonify(paginate(query, lambda c: c.to_dict())), 200


@bp.route('/<company_id>', methods=['GET'])
@jwt_required()
def get_company(company_id):
    company = organization.get_company(current_actor(), company_id)
    data = company.to_dict()
    data["stats"] = organization.company_stats(company)
    return jsonify(data), 200


@bp.route('', methods=['POST'])
@roles_required('super_admin')
def create_company():
    data = create_schema.load(request.get_json() or {})
    company = organization.create_company(current_actor(), data)
    return jsonify(company.to_dict()), 201


@bp.route('/<company_id>', methods=['PUT'])
@jwt_required()
def update_company(company_id):
    data = update_schema.load(request.get_json() or {})
    company = organization.update_company(current_actor(), company_id, data)
    return jsonify(company.to_dict()), 200


@bp.route('/<company_id>', methods=['DELETE'])
@roles_required('super_admin')
def delete_company(company_id):
    """Delete a company and everything it owns (sites, users, surveys, templates)."""
    organization.delete_company(current_actor(), company_id)
    return jsonify({"message": "Company deleted"}), 200
