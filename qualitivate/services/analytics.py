"""
Survey Analytics

Read-only reporting over collected responses: a survey overview (status
counts, completion rate, NPS, daily trend), per-question answer
distributions and a flat export of completed responses.

Distributions and NPS only count answers that belong to completed
responses. Every entry point checks READ on the survey's responses, so an
admin only sees analytics for surveys inside its own scope.
"""
import csv
import io
import json
import logging
import re
from collections import Counter, defaultdict
from datetime import datetime, timedelta

from sqlalchemy import func

from qualitivate.models import Answer, Response, Survey
from qualitivate.services.access_policy import READ
from qualitivate.services.permissions import authorize, apply_scope
from qualitivate.services.surveys import load_survey

logger = logging.getLogger(__name__)

TREND_DAYS = 30
EXPORT_HEADER_WIDTH = 50

NUMERIC_TYPES = ('nps', 'rating_scale')
TEXT_TYPES = ('text_short', 'text_long')


def _percent(part, whole):
    return round(100.0 * part / whole) if whole else 0


def _numeric(value):
    """Score carried by an nps/rating answer, or None when it is not a number."""
    if isinstance(value, dict):
        value = value.get('value')
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value) if '.' in value else int(value)
        except ValueError:
            return None
    return None


def nps_breakdown(scores):
    """
    Net Promoter Score for a list of 0-10 scores.

    Promoters score 9-10, passives 7-8, detractors 0-6. The score is
    promoters% minus detractors%, between -100 and 100. Returns None when
    there are no scores.
    """
    if not scores:
        return None
    total = len(scores)
    promoters = sum(1 for s in scores if s >= 9)
    detractors = sum(1 for s in scores if s <= 6)
    passives = total - promoters - detractors
    return {
        "score": _percent(promoters - detractors, total),
        "promoters": {"count": promoters, "percentage": _percent(promoters, total)},
        "passives": {"count": passives, "percentage": _percent(passives, total)},
        "detractors": {"count": detractors, "percentage": _percent(detractors, total)},
        "total_responses": total,
    }


def _readable_survey(actor, survey_id):
    survey = load_survey(survey_id)
    authorize(actor, survey.tenant_scope(), READ, 'response')
    return survey


def _completed_answers(survey_ids):
    """question_id -> [value, ...] over completed responses of the given surveys."""
    rows = (
        Answer.query
        .join(Response, Answer.response_id == Response.response_id)
        .filter(Response.survey_id.in_(survey_ids), Response.status == 'completed')
        .with_entities(Answer.question_id, Answer.value)
        .all()
    )
    by_question = defaultdict(list)
    for question_id, value in rows:
        by_question[question_id].append(value)
    return by_question


def _nps_scores(questions, answers):
    scores = []
    for question in questions:
        if question.type != 'nps':
            continue
        for value in answers.get(question.question_id, []):
            score = _numeric(value)
            if score is not None:
                scores.append(score)
    return scores


def _daily_trend(survey_id, now):
    since = now - timedelta(days=TREND_DAYS)
    rows = (
        Response.query
        .filter(Response.survey_id == survey_id, Response.started_at >= since)
        .with_entities(Response.started_at, Response.status)
        .all()
    )
    days = defaultdict(lambda: {"count": 0, "completed": 0})
    for started_at, status in rows:
        day = days[started_at.date().isoformat()]
        day["count"] += 1
        if status == 'completed':
            day["completed"] += 1
    return [dict(date=date, **days[date]) for date in sorted(days)]


def survey_summary(actor, survey_id, now=None):
    survey = _readable_survey(actor, survey_id)
    now = now or datetime.utcnow()

    by_status = dict(
        Response.query
        .filter(Response.survey_id == survey.survey_id)
        .with_entities(Response.status, func.count(Response.response_id))
        .group_by(Response.status)
        .all()
    )
    total = sum(by_status.values())
    completed = by_status.get('completed', 0)

    first_started, last_completed = (
        Response.query
        .filter(Response.survey_id == survey.survey_id)
        .with_entities(func.min(Response.started_at), func.max(Response.completed_at))
        .one()
    )

    durations = [
        (r.completed_at - r.started_at).total_seconds()
        for r in Response.query.filter_by(survey_id=survey.survey_id, status='completed')
        if r.completed_at and r.started_at
    ]

    questions = list(survey.questions)
    answers = _completed_answers([survey.survey_id])

    return {
        "survey": {
            "survey_id": survey.survey_id,
            "title": survey.title,
            "type": survey.type,
            "status": survey.status,
            "starts_at": survey.starts_at.isoformat() if survey.starts_at else None,
            "ends_at": survey.ends_at.isoformat() if survey.ends_at else None,
        },
        "overview": {
            "total_responses": total,
            "completed_responses": completed,
            "started_responses": by_status.get('started', 0),
            "abandoned_responses": by_status.get('abandoned', 0),
            "completion_rate": _percent(completed, total),
            "avg_completion_seconds": round(sum(durations) / len(durations)) if durations else 0,
            "first_response_at": first_started.isoformat() if first_started else None,
            "last_response_at": last_completed.isoformat() if last_completed else None,
        },
        "nps": nps_breakdown(_nps_scores(questions, answers)),
        "trend": _daily_trend(survey.survey_id, now),
        "question_count": len(questions),
    }


def _distribution(question, values):
    distribution = {}
    stats = {}

    if question.type in NUMERIC_TYPES:
        numbers = [n for n in (_numeric(v) for v in values) if n is not None]
        if numbers:
            stats = {
                "average": round(sum(numbers) / len(numbers), 2),
                "min": min(numbers),
                "max": max(numbers),
                "count": len(numbers),
            }
            counts = Counter(numbers)
            distribution = {str(n): counts[n] for n in sorted(counts)}

    elif question.type == 'multiple_choice':
        counts = Counter()
        for value in values:
            choices = value if isinstance(value, list) else [value]
            counts.update(str(c) for c in choices if c not in (None, ''))
        distribution = dict(counts.most_common())

    elif question.type in TEXT_TYPES:
        texts = [v for v in values if isinstance(v, str)]
        stats = {
            "count": len(values),
            "avg_length": round(sum(len(t) for t in texts) / len(texts)) if texts else 0,
        }

    elif question.type == 'matrix':
        rows = defaultdict(Counter)
        for value in values:
            if isinstance(value, dict):
                for row, column in value.items():
                    rows[row][str(column)] += 1
        distribution = {row: dict(counts) for row, counts in rows.items()}

    return distribution, stats


def question_analytics(actor, survey_id):
    survey = _readable_survey(actor, survey_id)
    answers = _completed_answers([survey.survey_id])

    results = []
    for question in survey.questions:
        values = answers.get(question.question_id, [])
        distribution, stats = _distribution(question, values)
        results.append({
            "question_id": question.question_id,
            "content": question.content,
            "type": question.type,
            "is_required": question.is_required,
            "options": question.options,
            "total_answers": len(values),
            "distribution": distribution,
            "stats": stats,
        })
    return {"survey_id": survey.survey_id, "questions": results}


def scoped_overview(actor):
    """Survey and response totals plus overall NPS across the surveys the actor manages."""
    surveys = apply_scope(
        Survey.query, actor,
        company_col=Survey.company_id,
        site_col=Survey.site_id,
        department_col=Survey.department_id,
        owner_col=Survey.created_by,
    ).all()
    survey_ids = [s.survey_id for s in surveys]

    status_counts = Counter(s.status for s in surveys)
    total = completed = 0
    if survey_ids:
        total = Response.query.filter(Response.survey_id.in_(survey_ids)).count()
        completed = Response.query.filter(
            Response.survey_id.in_(survey_ids), Response.status == 'completed'
        ).count()

    answers = _completed_answers(survey_ids) if survey_ids else {}
    questions = [q for s in surveys for q in s.questions]

    return {
        "surveys": {
            "total": len(surveys),
            "draft": status_counts.get('draft', 0),
            "active": status_counts.get('active', 0),
            "closed": status_counts.get('closed', 0),
        },
        "responses": {
            "total": total,
            "completed": completed,
            "completion_rate": _percent(completed, total),
        },
        "nps": nps_breakdown(_nps_scores(questions, answers)),
    }


def _header(question):
    return f"Q{question.order_index + 1}: {question.content[:EXPORT_HEADER_WIDTH]}"


def _cell(value):
    if value is None:
        return ''
    if isinstance(value, list):
        return '; '.join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, sort_keys=True)
    return str(value)


def export_rows(actor, survey_id):
    """
    Completed responses of a survey, newest first, as (headers, rows).

    Anonymous surveys never expose the respondent token.
    """
    survey = _readable_survey(actor, survey_id)
    questions = list(survey.questions)

    responses = (
        Response.query
        .filter_by(survey_id=survey.survey_id, status='completed')
        .order_by(Response.completed_at.desc())
        .all()
    )
    answers = defaultdict(dict)
    if responses:
        for answer in Answer.query.filter(Answer.response_id.in_([r.response_id for r in responses])):
            answers[answer.response_id][answer.question_id] = answer.value

    headers = ['Response ID', 'Respondent', 'Started At', 'Completed At'] + [_header(q) for q in questions]
    rows = []
    for response in responses:
        respondent = 'Anonymous' if survey.is_anonymous else (response.anonymous_token or 'Unknown')
        row = [
            response.response_id,
            respondent,
            response.started_at.isoformat() if response.started_at else '',
            response.completed_at.isoformat() if response.completed_at else '',
        ]
        row.extend(_cell(answers[response.response_id].get(q.question_id)) for q in questions)
        rows.append(row)

    logger.info("Exported %d responses of survey %s for %s", len(rows), survey.survey_id, actor.user_id)
    return survey, headers, rows


def export_filename(survey):
    return f"{re.sub(r'[^A-Za-z0-9]', '_', survey.title)}_responses.csv"


def export_csv(actor, survey_id):
    survey, headers, rows = export_rows(actor, survey_id)
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    writer.writerows(rows)
    return export_filename(survey), output.getvalue()
