from datetime import datetime, timedelta

from qualitivate.extensions import db
from qualitivate.models import Answer, Response
from qualitivate.services.responses import upsert_answer
from tests.factories import auth_headers, make_survey

QUESTIONS = [('nps', 'Recommend?', True), ('multiple_choice', 'Which?', False), ('text_long', 'Why?', True)]


def _start(client, survey, headers=None, **body):
    resp = client.post(f'/api/responses/survey/{survey.survey_id}/start', json=body, headers=headers or {})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def test_public_survey_payload(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS, is_public=True)
    resp = client.get(f'/api/responses/survey/{survey.survey_id}/public')
    assert resp.status_code == 200
    assert [q["content"] for q in resp.get_json()["questions"]] == ['Recommend?', 'Which?', 'Why?']


def test_inactive_or_out_of_window_surveys_are_closed(client, tenants):
    draft = make_survey(tenants.admin_x, status='draft', is_public=True)
    assert client.get(f'/api/responses/survey/{draft.survey_id}/public').status_code == 404

    later = make_survey(tenants.admin_x, is_public=True)
    later.starts_at = datetime.utcnow() + timedelta(days=3)
    db.session.commit()
    assert client.post(f'/api/responses/survey/{later.survey_id}/start', json={}).status_code == 400


def test_private_company_survey_needs_a_member(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS)
    url = f'/api/responses/survey/{survey.survey_id}/start'

    assert client.post(url, json={}).status_code == 401
    assert client.post(url, json={}, headers=auth_headers(tenants.member_y)).status_code == 403

    started = _start(client, survey, headers=auth_headers(tenants.member))
    assert started["respondent_id"] == tenants.member.user_id


def test_anonymous_token_format(client, tenants):
    survey = make_survey(tenants.admin_x, is_public=True)
    direct = _start(client, survey)
    tracked = _start(client, survey, distribution_id='qr-lobby', language_used='fr')

    assert direct["anonymous_token"].startswith('direct_')
    assert tracked["anonymous_token"].startswith('qr-lobby_')
    assert tracked["language_used"] == 'fr'
    assert direct["status"] == 'started'


def test_answer_upsert_keeps_one_row(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS, is_public=True)
    question_id = survey.questions[0].question_id
    response_id = _start(client, survey)["response_id"]
    url = f'/api/responses/{response_id}/answer'

    assert client.post(url, json={"question_id": question_id, "value": 3}).status_code == 200
    assert client.post(url, json={"question_id": question_id, "value": 9}).status_code == 200

    answers = Answer.query.filter_by(response_id=response_id).all()
    assert len(answers) == 1
    db.session.refresh(answers[0])
    assert answers[0].value == 9


def test_upsert_service_replaces_structured_values(tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS, is_public=True)
    response = Response(survey_id=survey.survey_id, status='started')
    db.session.add(response)
    db.session.commit()
    question_id = survey.questions[1].question_id

    upsert_answer(response.response_id, question_id, ["Ops"])
    upsert_answer(response.response_id, question_id, ["Ops", "Sales"])
    upsert_answer(response.response_id, survey.questions[2].question_id, "Because")
    db.session.commit()

    values = {a.question_id: a.value for a in Answer.query.filter_by(response_id=response.response_id)}
    assert values == {question_id: ["Ops", "Sales"], survey.questions[2].question_id: "Because"}


def test_answer_rejects_foreign_question_and_closed_survey(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS, is_public=True)
    other = make_survey(tenants.admin_x, questions=QUESTIONS, is_public=True)
    response_id = _start(client, survey)["response_id"]
    url = f'/api/responses/{response_id}/answer'

    foreign = client.post(url, json={"question_id": other.questions[0].question_id, "value": 1})
    assert foreign.status_code == 400

    survey.status = 'closed'
    db.session.commit()
    closed = client.post(url, json={"question_id": survey.questions[0].question_id, "value": 1})
    assert closed.status_code == 400
    assert Answer.query.count() == 0


def test_submit_checks_required_questions(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS, is_public=True)
    q_nps, q_choice, q_why = [q.question_id for q in survey.questions]
    response_id = _start(client, survey)["response_id"]
    url = f'/api/responses/{response_id}/submit'

    missing = client.post(url, json={"answers": [{"question_id": q_nps, "value": 10},
                                                  {"question_id": q_why, "value": ""}]})
    assert missing.status_code == 400
    assert missing.get_json()["details"]["missing"] == [q_why]
    assert Answer.query.count() == 0

    client.post(f'/api/responses/{response_id}/answer', json={"question_id": q_why, "value": "Great team"})
    done = client.post(url, json={"answers": [{"question_id": q_nps, "value": 10},
                                               {"question_id": q_choice, "value": ["A"]}]})
    assert done.status_code == 200
    body = done.get_json()
    assert body["status"] == 'completed'
    assert body["answers"] == {q_nps: 10, q_choice: ["A"], q_why: "Great team"}

    again = client.post(f'/api/responses/{response_id}/answer', json={"question_id": q_nps, "value": 1})
    assert again.status_code == 400


def test_progress_and_complete(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS, is_public=True)
    response_id = _start(client, survey)["response_id"]
    client.post(f'/api/responses/{response_id}/answer',
                json={"question_id": survey.questions[0].question_id, "value": 7})

    progress = client.get(f'/api/responses/{response_id}/progress').get_json()
    assert progress["total_questions"] == 3
    assert progress["answered"] == 1
    assert progress["required_total"] == 2
    assert progress["required_answered"] == 1
    assert progress["percent_complete"] == 33.3

    url = f'/api/responses/{response_id}/complete'
    early = client.post(url)
    assert early.status_code == 400
    assert early.get_json()["details"]["missing"] == [survey.questions[2].question_id]

    client.post(f'/api/responses/{response_id}/answer',
                json={"question_id": survey.questions[2].question_id, "value": "Good pay"})
    assert client.post(url).get_json()["status"] == 'completed'
    assert client.post(url).status_code == 400


def test_complete_without_answers_is_rejected(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS, is_public=True)
    response_id = _start(client, survey)["response_id"]

    resp = client.post(f'/api/responses/{response_id}/complete')
    assert resp.status_code == 400
    assert sorted(resp.get_json()["details"]["missing"]) == sorted(
        [survey.questions[0].question_id, survey.questions[2].question_id]
    )
    assert db.session.get(Response, response_id).status == 'started'


def test_complete_rejects_closed_survey(client, tenants):
    survey = make_survey(tenants.admin_x, questions=[('nps', 'Recommend?', False)], is_public=True)
    response_id = _start(client, survey)["response_id"]
    survey.status = 'closed'
    db.session.commit()

    assert client.post(f'/api/responses/{response_id}/complete').status_code == 400


def test_authenticated_response_belongs_to_respondent(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS)
    response_id = _start(client, survey, headers=auth_headers(tenants.member))["response_id"]

    assert client.get(f'/api/responses/{response_id}/progress').status_code == 403
    assert client.get(f'/api/responses/{response_id}/progress',
                      headers=auth_headers(tenants.member)).status_code == 200


def test_user_completed_responses(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS)
    headers = auth_headers(tenants.member)
    first = _start(client, survey, headers=headers)["response_id"]
    _start(client, survey, headers=headers)
    client.post(f'/api/responses/{first}/submit', headers=headers, json={"answers": [
        {"question_id": survey.questions[0].question_id, "value": 9},
        {"question_id": survey.questions[2].question_id, "value": "Fine"},
    ]})

    data = client.get('/api/responses/user/completed', headers=headers).get_json()["data"]
    assert [r["response_id"] for r in data] == [first]


def test_admin_lists_survey_responses(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS, is_public=True)
    response_id = _start(client, survey)["response_id"]
    client.post(f'/api/responses/{response_id}/answer',
                json={"question_id": survey.questions[0].question_id, "value": 8})

    resp = client.get(f'/api/surveys/{survey.survey_id}/responses', headers=auth_headers(tenants.admin_x))
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data[0]["answers"] == {survey.questions[0].question_id: 8}

    denied = client.get(f'/api/surveys/{survey.survey_id}/responses', headers=auth_headers(tenants.member))
    assert denied.status_code == 403
