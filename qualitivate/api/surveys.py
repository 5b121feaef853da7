from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from qualitivate.api.guards import current_actor
from qualitivate.api.pagination import paginate
from qualitivate.schemas.survey_schema import (
    SurveyCreateSchema, SurveyUpdateSchema, QuestionSchema, QuestionUpdateSchema,
    ReorderSchema, SaveAsTemplateSchema,
)
from qualitivate.services import surveys, provisioning, responses, template_catalog

bp = Blueprint('surveys', __name__)

create_schema = SurveyCreateSchema()
update_schema = SurveyUpdateSchema()
question_schema = QuestionSchema()
question_update_schema = QuestionUpdateSchema()
reorder_schema = ReorderSchema()
save_as_template_schema = SaveAsTemplateSchema()


@bp.route('', methods=['GET'])
@jwt_required()
def list_surveys():
    """
    List surveys in the caller's scope.

    Query Parameters:
        - company_id: super_admin only; "general" for surveys without a company
        - search: substring of title or description
        - type: nps | custom
        - status: draft | active | closed
        - page, limit
    """
    query = surveys.list_surveys(
        current_actor(),
        company_id=request.args.get('company_id'),
        search=request.args.get('search'),
        survey_type=request.args.get('type'),
        status=request.args.get('status'),
    )
    return jsonify(paginate(query, lambda s: s.to_dict())), 200


@bp.route('', methods=['POST'])
@jwt_required()
def create_survey():
    data = create_schema.load(request.get_json() or {})
    survey = provisioning.create_blank_survey(current_actor(), data)
    return jsonify(survey.to_dict(include_questions=True)), 201


@bp.route('/<survey_id>', methods=['GET'])
@jwt_required()
def get_survey(survey_id):
    survey = surveys.get_survey(current_actor(), survey_id)
    data = survey.to_dict(include_questions=True)
    data["stats"] = {"responses": surveys.response_count(survey.survey_id)}
    return jsonify(data), 200


@bp.route('/<survey_id>', methods=['PUT'])
@jwt_required()
def update_survey(survey_id):
    data = update_schema.load(request.get_json() or {})
    survey = surveys.update_survey(current_actor(), survey_id, data)
    return jsonify(survey.to_dict()), 200


@bp.route('/<survey_id>', methods=['DELETE'])
@jwt_required()
def delete_survey(survey_id):
    surveys.delete_survey(current_actor(), survey_id)
    return jsonify({"message": "Survey deleted"}), 200


@bp.route('/<survey_id>/duplicate', methods=['POST'])
@jwt_required()
def duplicate_survey(survey_id):
    survey = provisioning.duplicate_survey(current_actor(), survey_id)
    return jsonify(survey.to_dict(include_questions=True)), 201


@bp.route('/<survey_id>/save-as-template', methods=['POST'])
@jwt_required()
def save_as_template(survey_id):
    data = save_as_template_schema.load(request.get_json(silent=True) or {})
    survey = surveys.load_survey(survey_id)
    template = template_catalog.create_template_from_survey(current_actor(), survey, data)
    return jsonify(template.to_dict(include_questions=True)), 201


@bp.route('/<survey_id>/responses', methods=['GET'])
@jwt_required()
def list_survey_responses(survey_id):
    query = responses.survey_responses(current_actor(), survey_id, status=request.args.get('status'))
    return jsonify(paginate(query, lambda r: r.to_dict(include_answers=True))), 200


# Questions

@bp.route('/<survey_id>/questions', methods=['GET'])
@jwt_required()
def list_questions(survey_id):
    questions = surveys.list_questions(current_actor(), survey_id)
    return jsonify({"data": [q.to_dict() for q in questions]}), 200


@bp.route('/<survey_id>/questions', methods=['POST'])
@jwt_required()
def add_question(survey_id):
    data = question_schema.load(request.get_json() or {})
    question = surveys.add_question(current_actor(), survey_id, data)
    return jsonify(question.to_dict()), 201


@bp.route('/<survey_id>/questions/reorder', methods=['PUT'])
@jwt_required()
def reorder_questions(survey_id):
    data = reorder_schema.load(request.get_json() or {})
    questions = surveys.reorder_questions(current_actor(), survey_id, data['question_ids'])
    return jsonify({"data": [q.to_dict() for q in questions]}), 200


@bp.route('/<survey_id>/questions/<question_id>', methods=['PUT'])
@jwt_required()
def update_question(survey_id, question_id):
    data = question_update_schema.load(request.get_json() or {})
    question = surveys.update_question(current_actor(), survey_id, question_id, data)
    return jsonify(question.to_dict()), 200


@bp.route('/<survey_id>/questions/<question_id>', methods=['DELETE'])
@jwt_required()
def delete_question(survey_id, question_id):
    surveys.delete_question(current_actor(), survey_id, question_id)
    return jsonify({"message": "Question deleted"}), 200
