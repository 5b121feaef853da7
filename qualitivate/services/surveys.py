import logging

from sqlalchemy import func, or_

from qualitivate.extensions import db
from qualitivate.errors import NotFoundError, ValidationFailed
from qualitivate.models import Survey, Question, Response
from qualitivate.schemas.survey_schema import validate_question_options
from qualitivate.services.access_policy import (
    decide, SUPER_ADMIN, USER, READ, WRITE, DELETE, TAKE,
)
from qualitivate.services.permissions import authorize, apply_scope

logger = logging.getLogger(__name__)


def list_surveys(actor, company_id=None, search=None, survey_type=None, status=None):
    """
    Surveys the actor may see, newest first.

    super_admin may narrow by company (``company_id='general'`` for surveys
    without a company). Plain users only see active surveys they can take.
    """
    query = Survey.query

    if actor.role == SUPER_ADMIN:
        if company_id == 'general':
            query = query.filter(Survey.company_id.is_(None))
        elif company_id:
            query = query.filter(Survey.company_id == company_id)
    elif actor.role == USER:
        query = query.filter(
            or_(Survey.company_id.is_(None), Survey.company_id == actor.company_id),
            Survey.status == 'active',
        )
    else:
        query = apply_scope(
            query, actor,
            company_col=Survey.company_id,
            site_col=Survey.site_id,
            department_col=Survey.department_id,
            owner_col=Survey.created_by,
        )

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Survey.title.ilike(pattern), Survey.description.ilike(pattern)))
    if survey_type:
        query = query.filter(Survey.type == survey_type)
    if status:
        query = query.filter(Survey.status == status)

    return query.order_by(Survey.created_at.desc())


def load_survey(survey_id):
    survey = db.session.get(Survey, survey_id)
    if not survey:
        raise NotFoundError("Survey not found")
    return survey


def get_survey(actor, survey_id):
    survey = load_survey(survey_id)
    decision = decide(actor, survey.tenant_scope(), READ, 'survey')
    if not decision and actor.role == USER and survey.status == 'active':
        # Respondents read the surveys they are allowed to take; admins stay inside their scope
        decision = decide(actor, survey.tenant_scope(), TAKE, 'survey')
    if not decision:
        authorize(actor, survey.tenant_scope(), READ, 'survey')
    return survey


def response_count(survey_id):
    return Response.query.filter_by(survey_id=survey_id).count()


def update_survey(actor, survey_id, data):
    survey = load_survey(survey_id)
    authorize(actor, survey.tenant_scope(), WRITE, 'survey')

    if data.get('status') == 'active' and survey.status == 'closed' and response_count(survey_id):
        raise ValidationFailed("A closed survey with responses cannot be re-activated")

    starts_at = data.get('starts_at', survey.starts_at)
    ends_at = data.get('ends_at', survey.ends_at)
    if starts_at and ends_at and starts_at > ends_at:
        raise ValidationFailed("Validation failed", details={"ends_at": ["ends_at must not be before starts_at"]})

    for field in ('title', 'description', 'type', 'status', 'is_public', 'is_anonymous',
                  'default_language', 'settings', 'starts_at', 'ends_at'):
        if field in data:
            setattr(survey, field, data[field].strip() if field == 'title' else data[field])

    db.session.commit()
    logger.info("Survey %s updated by %s", survey_id, actor.user_id)
    return survey


def delete_survey(actor, survey_id):
    survey = load_survey(survey_id)
    authorize(actor, survey.tenant_scope(), DELETE, 'survey')
    db.session.delete(survey)
    db.session.commit()
    logger.info("Survey %s deleted by %s", survey_id, actor.user_id)


# Questions

def _writable_survey(actor, survey_id):
    survey = load_survey(survey_id)
    authorize(actor, survey.tenant_scope(), WRITE, 'question')
    return survey


def _load_question(survey, question_id):
    question = Question.query.filter_by(survey_id=survey.survey_id, question_id=question_id).first()
    if not question:
        raise NotFoundError("Question not found")
    return question


def list_questions(actor, survey_id):
    return get_survey(actor, survey_id).questions


def add_question(actor, survey_id, data):
    survey = _writable_survey(actor, survey_id)
    last_index = (
        db.session.query(func.max(Question.order_index))
        .filter(Question.survey_id == survey.survey_id)
        .scalar()
    )
    question = Question(
        survey_id=survey.survey_id,
        type=data['type'],
        content=data['content'],
        options=data.get('options') or {},
        is_required=data.get('is_required', False),
        order_index=0 if last_index is None else last_index + 1,
    )
    db.session.add(question)
    db.session.commit()
    return question


def update_question(actor, survey_id, question_id, data):
    survey = _writable_survey(actor, survey_id)
    question = _load_question(survey, question_id)

    new_type = data.get('type', question.type)
    new_options = data.get('options', question.options)
    validate_question_options(new_type, new_options)

    for field in ('type', 'content', 'options', 'is_required'):
        if field in data:
            setattr(question, field, data[field])
    db.session.commit()
    return question


def _rewrite_order(questions):
    # Two passes so no intermediate state collides on (survey_id, order_index)
    for index, question in enumerate(questions):
        question.order_index = -(index + 1)
    db.session.flush()
    for index, question in enumerate(questions):
        question.order_index = index
    db.session.flush()


def delete_question(actor, survey_id, question_id):
    survey = _writable_survey(actor, survey_id)
    question = _load_question(survey, question_id)
    try:
        db.session.delete(question)
        db.session.flush()
        remaining = (
            Question.query.filter_by(survey_id=survey.survey_id)
            .order_by(Question.order_index, Question.created_at)
            .all()
        )
        _rewrite_order(remaining)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def reorder_questions(actor, survey_id, question_ids):
    """Apply a full permutation of the survey's question ids."""
    survey = _writable_survey(actor, survey_id)
    questions = {q.question_id: q for q in survey.questions}

    if len(question_ids) != len(set(question_ids)) or set(question_ids) != set(questions):
        raise ValidationFailed(
            "question_ids must list every question of the survey exactly once",
            details={"question_ids": ["Expected a permutation of the survey's question ids"]},
        )

    try:
        _rewrite_order([questions[qid] for qid in question_ids])
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    db.session.refresh(survey)
    return survey.questions
