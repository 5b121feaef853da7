from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from qualitivate.api.guards import current_actor, optional_actor
from qualitivate.api.pagination import paginate
from qualitivate.schemas.response_schema import StartResponseSchema, AnswerSchema, SubmitSchema
from qualitivate.services import responses

bp = Blueprint('responses', __name__)

start_schema = StartResponseSchema()
answer_schema = AnswerSchema()
submit_schema = SubmitSchema()


@bp.route('/survey/<survey_id>/public', methods=['GET'])
def get_public_survey(survey_id):
    """Active survey with its ordered questions, for respondents."""
    survey = responses.get_public_survey(survey_id, optional_actor())
    return jsonify(survey.to_dict(include_questions=True)), 200


@bp.route('/survey/<survey_id>/start', methods=['POST'])
def start_response(survey_id):
    """
    Start a response.

    Request Body (optional):
        {"distribution_id": "...", "language_used": "fr"}
    """
    data = start_schema.load(request.get_json(silent=True) or {})
    response = responses.start_response(
        survey_id,
        actor=optional_actor(),
        ip_address=request.remote_addr,
        distribution_id=data.get('distribution_id'),
        language=data.get('language_used'),
    )
    return jsonify(response.to_dict()), 201


@bp.route('/user/completed', methods=['GET'])
@jwt_required()
def completed_responses():
    query = responses.completed_responses_for(current_actor())
    return jsonify(paginate(query, lambda r: r.to_dict())), 200


@bp.route('/<response_id>', methods=['GET'])
def get_response(response_id):
    response = responses.load_response(response_id, optional_actor())
    return jsonify(response.to_dict(include_answers=True)), 200


@bp.route('/<response_id>/answer', methods=['POST'])
def save_answer(response_id):
    """Upsert one answer; answering the same question again replaces the value."""
    data = answer_schema.load(request.get_json() or {})
    responses.save_answer(response_id, data['question_id'], data['value'], optional_actor())
    return jsonify({"message": "Answer saved"}), 200


@bp.route('/<response_id>/submit', methods=['POST'])
def submit_response(response_id):
    data = submit_schema.load(request.get_json() or {})
    response = responses.submit_response(response_id, data['answers'], optional_actor())
    return jsonify(response.to_dict(include_answers=True)), 200


@bp.route('/<response_id>/complete', methods=['POST'])
def complete_response(response_id):
    response = responses.complete_response(response_id, optional_actor())
    return jsonify(response.to_dict()), 200


@bp.route('/<response_id>/progress', methods=['GET'])
def response_progress(response_id):
    return jsonify(responses.response_progress(response_id, optional_actor())), 200
