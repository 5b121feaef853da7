from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from qualitivate.api.guards import current_actor
from qualitivate.api.pagination import paginate
from qualitivate.schemas.organization_schema import SiteSchema, SiteUpdateSchema
from qualitivate.services import organization

bp = Blueprint('sites', __name__)

site_schema = SiteSchema()
site_update_schema = SiteUpdateSchema()


@bp.route('', methods=['GET'])
@jwt_required()
def list_sites():
    query = organization.list_sites(
        current_actor(),
        company_id=request.args.get('company_id'),
        search=request.args.get('search'),
    )
    return jsonify(paginate(query, lambda s: s.to_dict())), 200


@bp.route('/<site_id>', methods=['GET'])
@jwt_required()
def get_site(site_id):
    site = organization.get_site(current_actor(), site_id)
    data = site.to_dict()
    data["departments"] = [d.to_dict() for d in site.departments]
    return jsonify(data), 200


@bp.route('', methods=['POST'])
@jwt_required()
def create_site():
    data = site_schema.load(request.get_json() or {})
    site = organization.create_site(current_actor(), data)
    return jsonify(site.to_dict()), 201


@bp.route('/<site_id>', methods=['PUT'])
@jwt_required()
def update_site(site_id):
    data = site_update_schema.load(request.get_json() or {})
    site = organization.update_site(current_actor(), site_id, data)
    return jsonify(site.to_dict()), 200


@bp.route('/<site_id>', methods=['DELETE'])
@jwt_required()
def delete_site(site_id):
    organization.delete_site(current_actor(), site_id)
    return jsonify({"message": "Site deleted"}), 200
