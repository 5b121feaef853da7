"""
Response Collection

A response moves started -> completed (or abandoned). Answers are written
with an INSERT ... ON CONFLICT DO UPDATE on (response_id, question_id), so a
second answer to the same question replaces the first and a response never
holds two answers for one question.
"""
import logging
import uuid
from datetime import datetime

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from qualitivate.extensions import db
from qualitivate.errors import (
    AuthenticationError, AuthorizationError, NotFoundError, ValidationFailed,
)
from qualitivate.models import Answer, Question, Response
from qualitivate.services.access_policy import TAKE, READ, decide
from qualitivate.services.permissions import authorize
from qualitivate.services.surveys import load_survey

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


def _check_take_access(survey, actor):
    if survey.is_public or survey.company_id is None:
        return
    if actor is None:
        raise AuthenticationError("Authentication required to take this survey")
    decision = decide(actor, survey.tenant_scope(), TAKE, 'survey')
    if not decision:
        logger.info("Survey %s not open to %s: %s", survey.survey_id, actor.user_id, decision.reason)
        raise AuthorizationError()


def _open_survey(survey_id, actor):
    survey = load_survey(survey_id)
    if survey.status != 'active':
        raise NotFoundError("Survey not found or not active")
    if not survey.is_open_at(datetime.utcnow()):
        raise ValidationFailed("Survey is not open for responses at this time")
    _check_take_access(survey, actor)
    return survey


def get_public_survey(survey_id, actor=None):
    return _open_survey(survey_id, actor)


def start_response(survey_id, actor=None, ip_address=None, distribution_id=None, language=None):
    survey = _open_survey(survey_id, actor)

    response = Response(
        survey_id=survey.survey_id,
        respondent_id=actor.user_id if actor else None,
        anonymous_token=f"{distribution_id or 'direct'}_{uuid.uuid4()}",
        ip_address=ip_address,
        language_used=language or survey.default_language,
        status='started',
    )
    db.session.add(response)
    db.session.commit()
    logger.info("Response %s started for survey %s", response.response_id, survey_id)
    return response


def load_response(response_id, actor=None):
    response = db.session.get(Response, response_id)
    if not response:
        raise NotFoundError("Response not found")
    if response.respondent_id and (actor is None or actor.user_id != response.respondent_id):
        raise AuthorizationError()
    return response


def _open_response(response_id, actor):
    response = load_response(response_id, actor)
    if response.status != 'started':
        raise ValidationFailed(f"Response is already {response.status}")
    if response.survey.status != 'active':
        raise ValidationFailed("Survey is no longer accepting answers")
    return response


def _survey_questions(response):
    return {q.question_id: q for q in response.survey.questions}


def upsert_answer(response_id, question_id, value, now=None):
    """Write the current answer for (response, question), replacing any earlier one."""
    now = now or datetime.utcnow()
    insert = _UPSERT_INSERTS.get(db.session.get_bind().dialect.name)

    if insert is None:
        answer = Answer.query.filter_by(response_id=response_id, question_id=question_id).first()
        if answer:
            answer.value = value
            answer.updated_at = now
        else:
            db.session.add(Answer(response_id=response_id, question_id=question_id, value=value))
        db.session.flush()
        return

    stmt = insert(Answer).values(
        answer_id=str(uuid.uuid4()),
        response_id=response_id,
        question_id=question_id,
        value=value,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=['response_id', 'question_id'],
        set_={'value': stmt.excluded['value'], 'updated_at': now},
    )
    db.session.execute(stmt)


def save_answer(response_id, question_id, value, actor=None):
    response = _open_response(response_id, actor)
    if question_id not in _survey_questions(response):
        raise ValidationFailed("Question does not belong to this survey")

    try:
        upsert_answer(response.response_id, question_id, value)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _is_blank(value):
    return value is None or value == '' or value == [] or value == {}


def _check_required(questions, current):
    missing = [
        qid for qid, question in questions.items()
        if question.is_required and _is_blank(current.get(qid))
    ]
    if missing:
        raise ValidationFailed("Required questions are unanswered", details={"missing": missing})


def submit_response(response_id, answers, actor=None):
    """
    Upsert the submitted answers, check that every required question has a
    non-empty answer and mark the response completed, all in one transaction.
    """
    response = _open_response(response_id, actor)
    questions = _survey_questions(response)

    foreign = [a['question_id'] for a in answers if a['question_id'] not in questions]
    if foreign:
        raise ValidationFailed("Question does not belong to this survey", details={"question_ids": foreign})

    current = {a.question_id: a.value for a in response.answers}
    for item in answers:
        current[item['question_id']] = item['value']

    _check_required(questions, current)

    now = datetime.utcnow()
    try:
        for item in answers:
            upsert_answer(response.response_id, item['question_id'], item['value'], now=now)
        response.status = 'completed'
        response.completed_at = now
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Response %s submitted with %d answers", response_id, len(answers))
    return response


def complete_response(response_id, actor=None):
    """Mark a response completed once every required question has a stored answer."""
    response = _open_response(response_id, actor)
    _check_required(
        _survey_questions(response),
        {a.question_id: a.value for a in response.answers},
    )
    response.status = 'completed'
    response.completed_at = datetime.utcnow()
    db.session.commit()
    return response


def response_progress(response_id, actor=None):
    response = load_response(response_id, actor)
    questions = _survey_questions(response)
    answered = {
        a.question_id for a in Answer.query.filter_by(response_id=response.response_id).all()
        if not _is_blank(a.value)
    }
    required = {qid for qid, q in questions.items() if q.is_required}
    total = len(questions)
    return {
        "response_id": response.response_id,
        "status": response.status,
        "total_questions": total,
        "answered": len(answered & set(questions)),
        "required_total": len(required),
        "required_answered": len(required & answered),
        "percent_complete": round(100.0 * len(answered & set(questions)) / total, 1) if total else 100.0,
    }


def completed_responses_for(actor):
    return (
        Response.query
        .filter_by(respondent_id=actor.user_id, status='completed')
        .order_by(Response.completed_at.desc())
    )


def survey_responses(actor, survey_id, status=None):
    survey = load_survey(survey_id)
    authorize(actor, survey.tenant_scope(), READ, 'response')
    query = Response.query.filter_by(survey_id=survey.survey_id)
    if status:
        query = query.filter(Response.status == status)
    return query.order_by(Response.started_at.desc())
