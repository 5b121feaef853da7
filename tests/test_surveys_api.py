from qualitivate.extensions import db
from qualitivate.models import Survey, Question, Response
from tests.factories import auth_headers, make_survey, make_user

QUESTIONS = [('nps', 'Recommend?', True), ('text_short', 'Team?', False), ('text_long', 'Ideas?', False)]


def _titles(client, user, **params):
    resp = client.get('/api/surveys', query_string=params, headers=auth_headers(user))
    assert resp.status_code == 200
    return sorted(s["title"] for s in resp.get_json()["data"])


def test_list_is_scoped_by_role(client, tenants):
    make_survey(tenants.admin_x, title='Company-wide')
    make_survey(tenants.site_admin, title='Site S1')
    make_survey(tenants.dept_admin, title='Dept D1')
    make_survey(tenants.dept_admin, title='Dept Draft', status='draft')
    make_survey(tenants.admin_y, title='Other company')
    make_survey(tenants.super_admin, title='General')

    assert _titles(client, tenants.admin_x) == ['Company-wide', 'Dept D1', 'Dept Draft', 'Site S1']
    assert _titles(client, tenants.site_admin) == ['Dept D1', 'Dept Draft', 'Site S1']
    assert _titles(client, tenants.dept_admin) == ['Dept D1', 'Dept Draft']
    assert _titles(client, tenants.member) == ['Company-wide', 'Dept D1', 'General', 'Site S1']
    assert len(_titles(client, tenants.super_admin)) == 6
    assert _titles(client, tenants.super_admin, company_id='general') == ['General']
    assert _titles(client, tenants.super_admin, company_id=tenants.y.company_id) == ['Other company']
    assert _titles(client, tenants.admin_x, status='draft') == ['Dept Draft']
    assert _titles(client, tenants.admin_x, search='dept') == ['Dept D1', 'Dept Draft']


def test_pagination_envelope(client, tenants):
    for i in range(5):
        make_survey(tenants.admin_x, title=f'S{i}')

    resp = client.get('/api/surveys', query_string={"page": 2, "limit": 2}, headers=auth_headers(tenants.admin_x))
    body = resp.get_json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {
        "page": 2, "limit": 2, "total": 5, "total_pages": 3, "has_next": True, "has_prev": True,
    }

    resp = client.get('/api/surveys', query_string={"page": "x", "limit": 1000}, headers=auth_headers(tenants.admin_x))
    assert resp.get_json()["pagination"]["page"] == 1
    assert resp.get_json()["pagination"]["limit"] == 100


def test_create_blank_survey(client, tenants):
    resp = client.post('/api/surveys', headers=auth_headers(tenants.dept_admin), json={
        "title": "Team retro",
        "status": "active",
        "settings": {"theme": {"color": "teal"}},
        "questions": [{"type": "rating_scale", "content": "Mood?", "options": {"min": 1, "max": 10}}],
    })

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["status"] == "draft"
    assert body["department_id"] == tenants.d1.department_id
    assert body["settings"] == {"theme": {"color": "teal"}}
    assert body["questions"][0]["options"] == {"min": 1, "max": 10}


def test_create_requires_title_and_admin(client, tenants):
    assert client.post('/api/surveys', headers=auth_headers(tenants.admin_x), json={}).status_code == 400
    assert client.post('/api/surveys', headers=auth_headers(tenants.member), json={"title": "Mine"}).status_code == 403


def test_get_survey_with_stats(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS)
    db.session.add(Response(survey_id=survey.survey_id, status='completed'))
    db.session.commit()

    resp = client.get(f'/api/surveys/{survey.survey_id}', headers=auth_headers(tenants.admin_x))
    body = resp.get_json()
    assert [q["order_index"] for q in body["questions"]] == [0, 1, 2]
    assert body["stats"] == {"responses": 1}


def test_member_reads_active_but_not_draft(client, tenants):
    active = make_survey(tenants.admin_x, status='active')
    draft = make_survey(tenants.admin_x, status='draft')
    foreign = make_survey(tenants.admin_y, status='active')
    headers = auth_headers(tenants.member)

    assert client.get(f'/api/surveys/{active.survey_id}', headers=headers).status_code == 200
    assert client.get(f'/api/surveys/{draft.survey_id}', headers=headers).status_code == 403
    assert client.get(f'/api/surveys/{foreign.survey_id}', headers=headers).status_code == 403
    assert client.get('/api/surveys/missing', headers=headers).status_code == 404


def test_admin_outside_subtree_cannot_read_active_survey(client, tenants):
    other_site = make_user('site_admin', tenants.x, tenants.s2, email='site2@x.com')
    active = make_survey(tenants.dept_admin, status='active')

    assert client.get(f'/api/surveys/{active.survey_id}', headers=auth_headers(other_site)).status_code == 403
    assert client.get(f'/api/surveys/{active.survey_id}/questions',
                      headers=auth_headers(other_site)).status_code == 403
    assert client.get(f'/api/surveys/{active.survey_id}',
                      headers=auth_headers(tenants.site_admin)).status_code == 200


def test_update_survey_rules(client, tenants):
    survey = make_survey(tenants.admin_x, status='closed')
    db.session.add(Response(survey_id=survey.survey_id, status='completed'))
    db.session.commit()
    headers = auth_headers(tenants.admin_x)
    url = f'/api/surveys/{survey.survey_id}'

    assert client.put(url, headers=headers, json={"status": "active"}).status_code == 400
    assert client.put(url, headers=headers, json={"status": "archived"}).status_code == 400
    assert client.put(url, headers=headers, json={"title": "   "}).status_code == 400
    window = client.put(url, headers=headers, json={
        "starts_at": "2026-05-02T00:00:00", "ends_at": "2026-05-01T00:00:00",
    })
    assert window.status_code == 400

    resp = client.put(url, headers=headers, json={"title": "Renamed", "ends_at": "2026-12-31T00:00:00Z"})
    assert resp.status_code == 200
    assert resp.get_json()["title"] == "Renamed"
    assert resp.get_json()["ends_at"] == "2026-12-31T00:00:00"


def test_delete_survey_cascades(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS)
    survey_id = survey.survey_id
    db.session.add(Response(survey_id=survey_id, status='started'))
    db.session.commit()

    assert client.delete(f'/api/surveys/{survey_id}', headers=auth_headers(tenants.site_admin)).status_code == 403
    assert client.delete(f'/api/surveys/{survey_id}', headers=auth_headers(tenants.admin_x)).status_code == 200
    assert Question.query.filter_by(survey_id=survey_id).count() == 0
    assert Response.query.filter_by(survey_id=survey_id).count() == 0


def test_duplicate_endpoint(client, tenants):
    survey = make_survey(tenants.admin_x, title='Original', questions=QUESTIONS)
    resp = client.post(f'/api/surveys/{survey.survey_id}/duplicate', headers=auth_headers(tenants.admin_x))
    assert resp.status_code == 201
    assert resp.get_json()["title"] == 'Original (Copy)'
    assert len(resp.get_json()["questions"]) == 3
    assert Survey.query.count() == 2


def test_question_crud_and_reorder(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS)
    headers = auth_headers(tenants.admin_x)
    base = f'/api/surveys/{survey.survey_id}/questions'

    added = client.post(base, headers=headers, json={"type": "multiple_choice", "content": "Pick",
                                                      "options": {"choices": ["A", "B"]}})
    assert added.status_code == 201
    assert added.get_json()["order_index"] == 3
    new_id = added.get_json()["question_id"]

    updated = client.put(f'{base}/{new_id}', headers=headers, json={"content": "Pick one", "is_required": True})
    assert updated.get_json()["content"] == "Pick one"
    assert updated.get_json()["is_required"] is True

    bad = client.put(f'{base}/{new_id}', headers=headers, json={"options": {"choices": []}})
    assert bad.status_code == 400

    ids = [q["question_id"] for q in client.get(base, headers=headers).get_json()["data"]]
    reordered = client.put(f'{base}/reorder', headers=headers, json={"question_ids": list(reversed(ids))})
    assert reordered.status_code == 200
    assert [q["question_id"] for q in reordered.get_json()["data"]] == list(reversed(ids))
    assert [q["order_index"] for q in reordered.get_json()["data"]] == [0, 1, 2, 3]

    partial = client.put(f'{base}/reorder', headers=headers, json={"question_ids": ids[:2]})
    assert partial.status_code == 400

    assert client.delete(f'{base}/{ids[1]}', headers=headers).status_code == 200
    remaining = client.get(base, headers=headers).get_json()["data"]
    assert [q["order_index"] for q in remaining] == [0, 1, 2]
    assert ids[1] not in [q["question_id"] for q in remaining]


def test_member_cannot_edit_questions(client, tenants):
    survey = make_survey(tenants.admin_x, questions=QUESTIONS)
    resp = client.post(f'/api/surveys/{survey.survey_id}/questions', headers=auth_headers(tenants.member),
                       json={"type": "nps", "content": "Sneaky"})
    assert resp.status_code == 403
