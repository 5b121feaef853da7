from datetime import date

import pytest

from qualitivate.extensions import db
from qualitivate.errors import AuthorizationError, NotFoundError
from qualitivate.models import Survey, Question, SurveyTemplate, TemplateQuestion
from qualitivate.services import provisioning
from qualitivate.services.provisioning import (
    create_survey_from_template, create_blank_survey, duplicate_survey,
)
from tests.factories import auth_headers, make_template, make_survey

THREE_QUESTIONS = [
    ('nps', 'How likely are you to recommend us?', {}),
    ('multiple_choice', 'Which team?', {"choices": ["Ops", "Sales"]}),
    ('text_long', 'Anything else?', {}),
]


def test_quick_nps_scenario(client, tenants):
    template = make_template(
        'Quick NPS', type='nps', use_count=3,
        questions=[('nps', 'Recommend us?', {}), ('text_long', 'Why?', {})],
    )

    resp = client.post(
        f'/api/templates/{template.template_id}/create-survey',
        json={"title": "Q1 Check-in"},
        headers=auth_headers(tenants.admin_x),
    )

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["title"] == "Q1 Check-in"
    assert body["company_id"] == tenants.x.company_id
    assert body["status"] == "draft"
    assert body["type"] == "nps"
    assert [(q["type"], q["content"], q["order_index"]) for q in body["questions"]] == [
        ('nps', 'Recommend us?', 0),
        ('text_long', 'Why?', 1),
    ]
    db.session.expire_all()
    assert db.session.get(SurveyTemplate, template.template_id).use_count == 4


def test_default_title_is_name_and_date(tenants):
    template = make_template('Engagement', questions=THREE_QUESTIONS)
    survey = create_survey_from_template(tenants.admin_x.as_actor(), template.template_id)
    assert survey.title == f"Engagement - {date.today().isoformat()}"
    assert survey.description == template.description


def test_order_index_sequence_is_preserved(tenants):
    template = make_template('Gappy', company=tenants.x)
    for order_index, content in [(7, 'third'), (0, 'first'), (3, 'second')]:
        db.session.add(TemplateQuestion(
            template_id=template.template_id, type='text_short', content=content,
            options={}, order_index=order_index,
        ))
    db.session.commit()

    survey = create_survey_from_template(tenants.admin_x.as_actor(), template.template_id)

    assert [q.order_index for q in survey.questions] == [0, 3, 7]
    assert [q.content for q in survey.questions] == ['first', 'second', 'third']


def test_zero_question_template_gives_empty_survey(tenants):
    template = make_template('Empty', company=tenants.x, use_count=0)
    survey = create_survey_from_template(tenants.admin_x.as_actor(), template.template_id)

    assert survey.questions == []
    db.session.expire_all()
    assert db.session.get(SurveyTemplate, template.template_id).use_count == 1


def test_failure_mid_copy_leaves_nothing_behind(tenants, monkeypatch):
    template = make_template('Fragile', questions=THREE_QUESTIONS, use_count=5)
    template_id = template.template_id
    original = provisioning._build_question
    calls = []

    def failing_build(survey, source):
        calls.append(source.question_id)
        if len(calls) == 2:
            raise RuntimeError("disk full")
        return original(survey, source)

    monkeypatch.setattr(provisioning, '_build_question', failing_build)

    with pytest.raises(RuntimeError):
        create_survey_from_template(tenants.admin_x.as_actor(), template_id, title='Doomed')

    assert Survey.query.count() == 0
    assert Question.query.count() == 0
    assert db.session.get(SurveyTemplate, template_id).use_count == 5


def test_failure_after_copy_rolls_back_counter(tenants, monkeypatch):
    template = make_template('Counter', questions=THREE_QUESTIONS, use_count=2)
    template_id = template.template_id

    def broken_commit():
        raise RuntimeError("connection lost")

    monkeypatch.setattr(db.session, 'commit', broken_commit)
    with pytest.raises(RuntimeError):
        create_survey_from_template(tenants.admin_x.as_actor(), template_id)
    monkeypatch.undo()

    assert Survey.query.count() == 0
    assert Question.query.count() == 0
    assert db.session.get(SurveyTemplate, template_id).use_count == 2


def test_other_company_template_is_not_found(tenants):
    template = make_template('Y only', company=tenants.y)
    with pytest.raises(NotFoundError):
        create_survey_from_template(tenants.admin_x.as_actor(), template.template_id)
    assert db.session.get(SurveyTemplate, template.template_id).use_count == 0


def test_plain_user_cannot_provision(tenants):
    template = make_template('Global', questions=THREE_QUESTIONS)
    with pytest.raises(AuthorizationError):
        create_survey_from_template(tenants.member.as_actor(), template.template_id)
    assert Survey.query.count() == 0


def test_super_admin_can_target_any_company_or_general(tenants):
    template = make_template('Global', questions=THREE_QUESTIONS)
    actor = tenants.super_admin.as_actor()

    general = create_survey_from_template(actor, template.template_id, company_id=None)
    assigned = create_survey_from_template(actor, template.template_id, company_id=tenants.y.company_id)

    assert general.company_id is None
    assert assigned.company_id == tenants.y.company_id
    with pytest.raises(NotFoundError):
        create_survey_from_template(actor, template.template_id, company_id='missing')


def test_company_override_ignored_for_non_super_admin(tenants):
    template = make_template('Global')
    survey = create_survey_from_template(
        tenants.admin_x.as_actor(), template.template_id, company_id=tenants.y.company_id
    )
    assert survey.company_id == tenants.x.company_id


def test_site_admin_survey_carries_site(tenants):
    template = make_template('Global', questions=THREE_QUESTIONS)
    survey = create_survey_from_template(tenants.site_admin.as_actor(), template.template_id)
    assert survey.site_id == tenants.s1.site_id
    assert survey.created_by == tenants.site_admin.user_id


def test_blank_survey_starts_as_draft(tenants):
    survey = create_blank_survey(tenants.admin_x.as_actor(), {
        "title": "  Town hall  ",
        "type": "custom",
        "questions": [
            {"type": "text_short", "content": "Second", "order_index": 5},
            {"type": "nps", "content": "First", "order_index": 1},
        ],
    })
    assert survey.status == 'draft'
    assert survey.title == 'Town hall'
    assert [(q.content, q.order_index) for q in survey.questions] == [('First', 0), ('Second', 1)]


def test_duplicate_copies_questions_without_touching_templates(tenants):
    template = make_template('Global', questions=THREE_QUESTIONS, use_count=1)
    source = create_survey_from_template(tenants.admin_x.as_actor(), template.template_id, title='Origin')

    copy = duplicate_survey(tenants.admin_x.as_actor(), source.survey_id)

    assert copy.survey_id != source.survey_id
    assert copy.title == 'Origin (Copy)'
    assert copy.status == 'draft'
    assert [(q.type, q.content, q.order_index) for q in copy.questions] == \
        [(q.type, q.content, q.order_index) for q in source.questions]
    db.session.expire_all()
    assert db.session.get(SurveyTemplate, template.template_id).use_count == 2


def test_duplicate_outside_scope_is_denied(tenants):
    source = make_survey(tenants.admin_y, title='Y survey')
    with pytest.raises(AuthorizationError):
        duplicate_survey(tenants.admin_x.as_actor(), source.survey_id)
