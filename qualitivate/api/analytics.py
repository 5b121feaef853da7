from flask import Blueprint, Response, request, jsonify

from qualitivate.api.guards import current_actor, roles_required
from qualitivate.errors import ValidationFailed
from qualitivate.services import analytics
from qualitivate.services.access_policy import ADMIN_ROLES

bp = Blueprint('analytics', __name__)

EXPORT_FORMATS = ('csv', 'json')


@bp.route('/overview', methods=['GET'])
@roles_required(*ADMIN_ROLES)
def overview():
    """Survey and response totals plus overall NPS for the caller's scope."""
    return jsonify(analytics.scoped_overview(current_actor())), 200


@bp.route('/surveys/<survey_id>', methods=['GET'])
@roles_required(*ADMIN_ROLES)
def survey_summary(survey_id):
    """
    Survey analytics

    Returns:
        200: {survey, overview, nps, trend, question_count}
        403: survey outside the caller's scope
        404: survey not found
    """
    return jsonify(analytics.survey_summary(current_actor(), survey_id)), 200


@bp.route('/surveys/<survey_id>/questions', methods=['GET'])
@roles_required(*ADMIN_ROLES)
def question_analytics(survey_id):
    """Answer distribution and stats for every question, in survey order."""
    return jsonify(analytics.question_analytics(current_actor(), survey_id)), 200


@bp.route('/surveys/<survey_id>/export', methods=['GET'])
@roles_required(*ADMIN_ROLES)
def export_responses(survey_id):
    """
    Export completed responses.

    Query Parameters:
        - format: csv (default, file download) or json
    """
    export_format = request.args.get('format', 'csv').lower()
    if export_format not in EXPORT_FORMATS:
        raise ValidationFailed(f"format must be one of: {', '.join(EXPORT_FORMATS)}")

    if export_format == 'json':
        _, headers, rows = analytics.export_rows(current_actor(), survey_id)
        data = [dict(zip(headers, row)) for row in rows]
        return jsonify({"data": data, "total": len(data)}), 200

    filename, content = analytics.export_csv(current_actor(), survey_id)
    response = Response(content, mimetype='text/csv')
    response.headers['Content-Disposition'] = f'attachment; filename={filename}'
    return response
