from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from qualitivate.api.guards import current_actor
from qualitivate.api.pagination import paginate
from qualitivate.schemas.survey_schema import (
    TemplateCreateSchema, TemplateUpdateSchema, CreateFromTemplateSchema,
)
from qualitivate.services import template_catalog
from qualitivate.services.provisioning import create_survey_from_template, UNSET

bp = Blueprint('templates', __name__)

create_schema = TemplateCreateSchema()
update_schema = TemplateUpdateSchema()
provision_schema = CreateFromTemplateSchema()


@bp.route('', methods=['GET'])
@jwt_required()
def list_templates():
    """
    List templates visible to the caller (global + own company).

    Query Parameters:
        - category: exact category match
        - search: case-insensitive substring of name or description
        - page, limit

    Each item carries is_global so clients can group global and company templates.
    """
    query = template_catalog.list_templates(
        current_actor(),
        category=request.args.get('category'),
        search=request.args.get('search'),
    )
    return jsonify(paginate(query, lambda t: t.to_dict())), 200


@bp.route('/categories', methods=['GET'])
@jwt_required()
def list_categories():
    return jsonify({"categories": template_catalog.list_categories(current_actor())}), 200


@bp.route('/<template_id>', methods=['GET'])
@jwt_required()
def get_template(template_id):
    template = template_catalog.get_template(current_actor(), template_id)
    return jsonify(template.to_dict(include_questions=True)), 200


@bp.route('', methods=['POST'])
@jwt_required()
def create_template():
    data = create_schema.load(request.get_json() or {})
    template = template_catalog.create_template(current_actor(), data)
    return jsonify(template.to_dict(include_questions=True)), 201


@bp.route('/<template_id>', methods=['PUT'])
@jwt_required()
def update_template(template_id):
    data = update_schema.load(request.get_json() or {})
    template = template_catalog.update_template(current_actor(), template_id, data)
    return jsonify(template.to_dict(include_questions=True)), 200


@bp.route('/<template_id>', methods=['DELETE'])
@jwt_required()
def delete_template(template_id):
    template_catalog.delete_template(current_actor(), template_id)
    return jsonify({"message": "Template deleted"}), 200


@bp.route('/<template_id>/create-survey', methods=['POST'])
@jwt_required()
def create_survey(template_id):
    """
    Provision a draft survey from a template.

    Request Body (all optional):
        {
            "title": "Q1 Check-in",
            "description": "...",
            "company_id": "<uuid> or null"   # super_admin only
        }
    """
    data = provision_schema.load(request.get_json(silent=True) or {})
    survey = create_survey_from_template(
        current_actor(),
        template_id,
        title=data.get('title'),
        description=data.get('description'),
        company_id=data.get('company_id', UNSET),
    )
    return jsonify(survey.to_dict(include_questions=True)), 201
