"""
Survey Provisioning Service

Creates surveys from a template, from scratch, or as a copy of another
survey. Each operation is one database transaction: the survey row, all of
its questions and (for templates) the use_count increment commit together or
not at all.
"""
import copy
import logging
from datetime import date

from sqlalchemy import update

from qualitivate.extensions import db
from qualitivate.errors import NotFoundError, ValidationFailed
from qualitivate.models import Company, Survey, Question, SurveyTemplate
from qualitivate.services.access_policy import Scope, SUPER_ADMIN, READ, WRITE
from qualitivate.services.permissions import authorize
from qualitivate.services.template_catalog import get_template, ordered_question_payloads

logger = logging.getLogger(__name__)

# Distinguishes "company_id not given" from an explicit None (general survey)
UNSET = object()


def _resolve_company(actor, company_id=UNSET):
    if actor.role == SUPER_ADMIN:
        if company_id is UNSET:
            return actor.company_id
        if company_id is None:
            return None
        if not db.session.get(Company, company_id):
            raise NotFoundError("Company not found")
        return company_id

    if actor.company_id is None:
        raise ValidationFailed("User is not assigned to a company")
    return actor.company_id


def _survey_scope(actor, company_id):
    """Surveys created inside the actor's own company carry its site/department."""
    if company_id is not None and company_id == actor.company_id:
        return Scope(company_id, actor.site_id, actor.department_id, actor.user_id)
    return Scope(company_id, None, None, actor.user_id)


def _new_survey(scope, actor, **fields):
    return Survey(
        company_id=scope.company_id,
        site_id=scope.site_id,
        department_id=scope.department_id,
        created_by=actor.user_id,
        status='draft',
        **fields
    )


def _build_question(survey, source):
    """Copy one question definition (template or survey question) under ``survey``."""
    return Question(
        survey_id=survey.survey_id,
        type=source.type,
        content=source.content,
        options=copy.deepcopy(source.options) if source.options is not None else {},
        is_required=bool(source.is_required),
        order_index=source.order_index,
    )


def create_survey_from_template(actor, template_id, title=None, description=None, company_id=UNSET):
    """
    Instantiate a draft survey from a template.

    Steps:
    1. Load the template (NotFound when missing or not visible)
    2. Create the survey (title defaults to "<template name> - <today>")
    3. Copy every template question, order_index preserved
    4. Increment template.use_count by exactly one (single UPDATE)
    5. Commit; any failure rolls all of it back

    Returns:
        Survey: the committed survey with its questions
    """
    template = get_template(actor, template_id)
    target_company = _resolve_company(actor, company_id)
    scope = _survey_scope(actor, target_company)
    authorize(actor, scope, WRITE, 'survey')

    sources = list(template.questions)

    try:
        survey = _new_survey(
            scope, actor,
            title=title or f"{template.name} - {date.today().isoformat()}",
            description=template.description if description is None else description,
            type=template.type,
            is_anonymous=template.is_anonymous,
            settings=copy.deepcopy(template.default_settings) or {},
        )
        db.session.add(survey)
        db.session.flush()

        for source in sources:
            db.session.add(_build_question(survey, source))
            db.session.flush()

        # Row-level increment; concurrent provisioning never loses an update
        db.session.execute(
            update(SurveyTemplate)
            .where(SurveyTemplate.template_id == template.template_id)
            .values(use_count=SurveyTemplate.use_count + 1)
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.warning("Provisioning from template %s rolled back", template_id)
        raise

    logger.info("Survey %s provisioned from template %s with %d questions",
                survey.survey_id, template_id, len(sources))
    return survey


def create_blank_survey(actor, data):
    """Create a draft survey from scratch, optionally with initial questions."""
    target_company = _resolve_company(actor, data.get('company_id', UNSET))
    scope = _survey_scope(actor, target_company)
    authorize(actor, scope, WRITE, 'survey')

    try:
        survey = _new_survey(
            scope, actor,
            title=data['title'].strip(),
            description=data.get('description'),
            type=data.get('type', 'custom'),
            is_public=data.get('is_public', False),
            is_anonymous=data.get('is_anonymous', False),
            default_language=data.get('default_language', 'en'),
            settings=data.get('settings') or {},
            starts_at=data.get('starts_at'),
            ends_at=data.get('ends_at'),
        )
        db.session.add(survey)
        db.session.flush()

        for payload in ordered_question_payloads(data.get('questions') or []):
            db.session.add(Question(
                survey_id=survey.survey_id,
                type=payload['type'],
                content=payload['content'],
                options=payload.get('options') or {},
                is_required=payload.get('is_required', False),
                order_index=payload['order_index'],
            ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Blank survey %s created by %s", survey.survey_id, actor.user_id)
    return survey


def duplicate_survey(actor, survey_id):
    """
    Copy a survey and its questions into a new draft. The copy stays in the
    source survey's tenant placement; no template counter is touched.
    """
    source = db.session.get(Survey, survey_id)
    if not source:
        raise NotFoundError("Survey not found")
    authorize(actor, source.tenant_scope(), READ, 'survey')

    scope = Scope(source.company_id, source.site_id, source.department_id, actor.user_id)
    authorize(actor, scope, WRITE, 'survey')

    sources = list(source.questions)

    try:
        survey = _new_survey(
            scope, actor,
            title=f"{source.title} (Copy)",
            description=source.description,
            type=source.type,
            is_public=source.is_public,
            is_anonymous=source.is_anonymous,
            default_language=source.default_language,
            settings=copy.deepcopy(source.settings) or {},
        )
        db.session.add(survey)
        db.session.flush()

        for question in sources:
            db.session.add(_build_question(survey, question))
            db.session.flush()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Survey %s duplicated into %s", survey_id, survey.survey_id)
    return survey
