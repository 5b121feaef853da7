"""
Template Catalog - listing, reading and authoring survey templates.

Visibility: super_admin sees every template, everybody else sees global
templates plus the ones owned by their company. A template outside the
caller's visibility is reported as missing.
"""
import logging

from sqlalchemy import or_

from qualitivate.extensions import db
from qualitivate.errors import AuthorizationError, NotFoundError, ValidationFailed
from qualitivate.models import Company, SurveyTemplate, TemplateQuestion
from qualitivate.services.access_policy import (
    Scope, SUPER_ADMIN, COMPANY_ADMIN, READ, WRITE, DELETE, outranks_or_equals,
)
from qualitivate.services.permissions import authorize

logger = logging.getLogger(__name__)


def visible_templates(actor):
    query = SurveyTemplate.query
    if actor.role != SUPER_ADMIN:
        query = query.filter(or_(
            SurveyTemplate.is_global.is_(True),
            SurveyTemplate.company_id == actor.company_id,
        ))
    return query


def list_templates(actor, category=None, search=None):
    """
    Templates visible to ``actor`` as a query, global ones first, then by
    popularity, then newest.
    """
    query = visible_templates(actor)
    if category:
        query = query.filter(SurveyTemplate.category == category)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            SurveyTemplate.name.ilike(pattern),
            SurveyTemplate.description.ilike(pattern),
        ))
    return query.order_by(
        SurveyTemplate.is_global.desc(),
        SurveyTemplate.use_count.desc(),
        SurveyTemplate.created_at.desc(),
    )


def list_categories(actor):
    rows = (
        visible_templates(actor)
        .with_entities(SurveyTemplate.category)
        .filter(SurveyTemplate.category.isnot(None))
        .distinct()
        .order_by(SurveyTemplate.category)
        .all()
    )
    return [row[0] for row in rows]


def get_template(actor, template_id):
    template = visible_templates(actor).filter(SurveyTemplate.template_id == template_id).first()
    if not template:
        raise NotFoundError("Template not found")
    return template


def ordered_question_payloads(questions):
    """
    Sort incoming question dicts by their order_index (list position when
    absent) and number them 0..n-1.
    """
    ranked = sorted(
        enumerate(questions),
        key=lambda item: (item[1].get('order_index', item[0]), item[0]),
    )
    result = []
    for new_index, (_, payload) in enumerate(ranked):
        item = dict(payload)
        item['order_index'] = new_index
        result.append(item)
    return result


def _resolve_global_flag(actor, requested):
    if requested and actor.role != SUPER_ADMIN:
        # Non-super-admins cannot publish globally; the request is downgraded
        logger.info("is_global requested by %s (%s), storing as company template",
                    actor.user_id, actor.role)
        return False
    return bool(requested)


def _resolve_owner_company(actor, is_global, requested_company_id=None, fallback_company_id=None):
    if is_global:
        return None
    if actor.role == SUPER_ADMIN and requested_company_id:
        if not db.session.get(Company, requested_company_id):
            raise NotFoundError("Company not found")
        return requested_company_id
    company_id = fallback_company_id or actor.company_id
    if company_id is None:
        raise ValidationFailed("A company template needs an owning company",
                               details={"company_id": ["Company is required for non-global templates"]})
    return company_id


def _add_template_questions(template, questions):
    for payload in ordered_question_payloads(questions):
        db.session.add(TemplateQuestion(
            template_id=template.template_id,
            type=payload['type'],
            content=payload['content'],
            options=payload.get('options') or {},
            is_required=payload.get('is_required', False),
            order_index=payload['order_index'],
        ))


def create_template(actor, data):
    is_global = _resolve_global_flag(actor, data.get('is_global', False))
    company_id = _resolve_owner_company(actor, is_global, data.get('company_id'))
    authorize(actor, Scope(company_id=company_id), WRITE, 'template')

    try:
        template = SurveyTemplate(
            company_id=company_id,
            created_by=actor.user_id,
            name=data['name'].strip(),
            description=data.get('description'),
            category=data.get('category'),
            type=data.get('type', 'custom'),
            is_global=is_global,
            is_anonymous=data.get('is_anonymous', True),
            default_settings=data.get('default_settings') or {},
            use_count=0,
        )
        db.session.add(template)
        db.session.flush()
        _add_template_questions(template, data.get('questions') or [])
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Template %s created by %s (global=%s, questions=%d)",
                template.template_id, actor.user_id, is_global, len(template.questions))
    return template


def update_template(actor, template_id, data):
    template = get_template(actor, template_id)
    authorize(actor, template.tenant_scope(), WRITE, 'template')

    try:
        for field in ('name', 'description', 'category', 'type', 'is_anonymous', 'default_settings'):
            if field in data:
                setattr(template, field, data[field])
        if 'questions' in data:
            template.questions.clear()
            # Old rows must be gone before the new order_index values land
            db.session.flush()
            _add_template_questions(template, data['questions'])
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    db.session.refresh(template)
    return template


def delete_template(actor, template_id):
    template = get_template(actor, template_id)
    authorize(actor, template.tenant_scope(), DELETE, 'template')
    db.session.delete(template)
    db.session.commit()
    logger.info("Template %s deleted by %s", template_id, actor.user_id)


def create_template_from_survey(actor, survey, data):
    """Snapshot a survey's questions into a new template with use_count 0."""
    authorize(actor, survey.tenant_scope(), READ, 'survey')
    if not outranks_or_equals(actor.role, COMPANY_ADMIN):
        logger.info("Save-as-template denied for %s (%s)", actor.user_id, actor.role)
        raise AuthorizationError()

    is_global = _resolve_global_flag(actor, data.get('is_global', False))
    company_id = _resolve_owner_company(actor, is_global, fallback_company_id=survey.company_id)
    authorize(actor, Scope(company_id=company_id), WRITE, 'template')

    questions = [
        {
            'type': q.type,
            'content': q.content,
            'options': q.options,
            'is_required': q.is_required,
            'order_index': q.order_index,
        }
        for q in survey.questions
    ]
    try:
        template = SurveyTemplate(
            company_id=company_id,
            created_by=actor.user_id,
            name=(data.get('name') or survey.title).strip(),
            description=data.get('description', survey.description),
            category=data.get('category'),
            type=survey.type,
            is_global=is_global,
            is_anonymous=bool(survey.is_anonymous),
            default_settings=survey.settings or {},
            use_count=0,
        )
        db.session.add(template)
        db.session.flush()
        _add_template_questions(template, questions)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Survey %s saved as template %s", survey.survey_id, template.template_id)
    return template

