from qualitivate.extensions import db
from qualitivate.models import Company, Site, Department, User, Survey
from tests.factories import auth_headers, make_survey, make_user


def test_department_admin_cannot_delete_its_site(client, tenants):
    site_id, dept_id = tenants.s1.site_id, tenants.d1.department_id

    resp = client.delete(f'/api/sites/{site_id}', headers=auth_headers(tenants.dept_admin))

    assert resp.status_code == 403
    assert resp.get_json() == {"error": "Access denied"}
    db.session.expire_all()
    site = db.session.get(Site, site_id)
    assert site is not None and site.name == 'S1'
    assert db.session.get(Department, dept_id).site_id == site_id


def test_site_admin_cannot_delete_sites_or_users(client, tenants):
    headers = auth_headers(tenants.site_admin)
    assert client.delete(f'/api/sites/{tenants.s1.site_id}', headers=headers).status_code == 403
    assert client.delete(f'/api/users/{tenants.member.user_id}', headers=headers).status_code == 403


def test_company_admin_deletes_site_and_detaches_users(client, tenants):
    member_id = tenants.member.user_id

    resp = client.delete(f'/api/sites/{tenants.s1.site_id}', headers=auth_headers(tenants.admin_x))

    assert resp.status_code == 200
    db.session.expire_all()
    member = db.session.get(User, member_id)
    assert member.site_id is None
    assert member.department_id is None
    assert Department.query.filter_by(site_id=tenants.s1.site_id).count() == 0


def test_company_admin_cannot_touch_other_company(client, tenants):
    resp = client.delete(f'/api/sites/{tenants.y1.site_id}', headers=auth_headers(tenants.admin_x))
    assert resp.status_code == 403


def test_company_crud_is_super_admin_only(client, tenants):
    payload = {"name": "Acme", "slug": "acme"}
    assert client.post('/api/companies', json=payload, headers=auth_headers(tenants.admin_x)).status_code == 403

    resp = client.post('/api/companies', json=payload, headers=auth_headers(tenants.super_admin))
    assert resp.status_code == 201
    assert resp.get_json()["slug"] == "acme"

    dup = client.post('/api/companies', json={"name": "Acme 2", "slug": "acme"}, headers=auth_headers(tenants.super_admin))
    assert dup.status_code == 409

    bad = client.post('/api/companies', json={"name": "Acme 3", "slug": "Not A Slug"}, headers=auth_headers(tenants.super_admin))
    assert bad.status_code == 400
    assert "slug" in bad.get_json()["details"]


def test_delete_company_cascades(client, tenants):
    company_id = tenants.x.company_id
    make_survey(tenants.admin_x, questions=[('nps', 'Q', True)])

    assert client.delete(f'/api/companies/{company_id}', headers=auth_headers(tenants.admin_x)).status_code == 403
    resp = client.delete(f'/api/companies/{company_id}', headers=auth_headers(tenants.super_admin))

    assert resp.status_code == 200
    db.session.expire_all()
    assert db.session.get(Company, company_id) is None
    assert Site.query.filter_by(company_id=company_id).count() == 0
    assert User.query.filter_by(company_id=company_id).count() == 0
    assert Survey.query.filter_by(company_id=company_id).count() == 0
    assert Department.query.count() == 0
    assert db.session.get(Company, tenants.y.company_id) is not None


def test_company_listing_and_stats(client, tenants):
    resp = client.get('/api/companies', headers=auth_headers(tenants.admin_x))
    assert [c["slug"] for c in resp.get_json()["data"]] == ['company-x']

    resp = client.get('/api/companies', headers=auth_headers(tenants.super_admin))
    assert resp.get_json()["pagination"]["total"] == 2

    resp = client.get(f'/api/companies/{tenants.x.company_id}', headers=auth_headers(tenants.admin_x))
    assert resp.get_json()["stats"] == {"sites": 2, "users": 4}

    assert client.get(f'/api/companies/{tenants.y.company_id}', headers=auth_headers(tenants.admin_x)).status_code == 403


def test_site_listing_is_scoped(client, tenants):
    names = lambda user: sorted(s["name"] for s in client.get('/api/sites', headers=auth_headers(user)).get_json()["data"])
    assert names(tenants.admin_x) == ['S1', 'S2']
    assert names(tenants.site_admin) == ['S1']
    assert names(tenants.dept_admin) == []
    assert names(tenants.super_admin) == ['S1', 'S2', 'Y1']


def test_department_crud_within_site(client, tenants):
    headers = auth_headers(tenants.site_admin)
    resp = client.post('/api/departments', json={"name": "D9", "site_id": tenants.s1.site_id}, headers=headers)
    assert resp.status_code == 201

    other = client.post('/api/departments', json={"name": "Nope", "site_id": tenants.s2.site_id}, headers=headers)
    assert other.status_code == 403

    listed = client.get('/api/departments', headers=headers).get_json()["data"]
    assert sorted(d["name"] for d in listed) == ['D1', 'D2', 'D9']


def test_invite_respects_role_ceiling(client, tenants):
    headers = auth_headers(tenants.site_admin)
    resp = client.post('/api/users', headers=headers, json={
        "email": "boss@x.com", "password": "SecurePass123", "role": "company_admin",
    })
    assert resp.status_code == 403


def test_invite_forces_actor_placement(client, tenants):
    resp = client.post('/api/users', headers=auth_headers(tenants.site_admin), json={
        "email": "New.Hire@X.com",
        "password": "SecurePass123",
        "first_name": "New",
        "role": "user",
        "company_id": tenants.y.company_id,
        "site_id": tenants.s2.site_id,
        "department_id": tenants.d2.department_id,
    })

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["email"] == "new.hire@x.com"
    assert body["company_id"] == tenants.x.company_id
    assert body["site_id"] == tenants.s1.site_id
    assert body["department_id"] == tenants.d2.department_id


def test_invite_rejects_department_outside_site(client, tenants):
    resp = client.post('/api/users', headers=auth_headers(tenants.admin_x), json={
        "email": "lost@x.com", "password": "SecurePass123",
        "site_id": tenants.s1.site_id, "department_id": tenants.d3.department_id,
    })
    assert resp.status_code == 400


def test_invite_duplicate_email_conflicts(client, tenants):
    resp = client.post('/api/users', headers=auth_headers(tenants.admin_x), json={
        "email": "member@x.com", "password": "SecurePass123",
    })
    assert resp.status_code == 409


def test_bulk_create_reports_failures_per_row(client, tenants):
    resp = client.post('/api/users/bulk', headers=auth_headers(tenants.admin_x), json={"users": [
        {"email": "one@x.com", "password": "SecurePass123"},
        {"email": "member@x.com", "password": "SecurePass123"},
        {"email": "weak@x.com", "password": "short"},
        {"email": "two@x.com", "password": "SecurePass123", "role": "site_admin", "site_id": tenants.s2.site_id},
    ]})

    assert resp.status_code == 201
    body = resp.get_json()
    assert [u["email"] for u in body["created"]] == ["one@x.com", "two@x.com"]
    assert [(f["index"], f["email"]) for f in body["failed"]] == [(1, "member@x.com"), (2, "weak@x.com")]
    assert body["failed"][0]["error"] == "Email already registered"
    assert User.query.filter(User.email.in_(["one@x.com", "two@x.com"])).count() == 2


def test_bulk_create_is_capped(app, client, tenants):
    app.config['MAX_BULK_USERS'] = 2
    rows = [{"email": f"u{i}@x.com", "password": "SecurePass123"} for i in range(3)]
    resp = client.post('/api/users/bulk', headers=auth_headers(tenants.admin_x), json={"users": rows})
    assert resp.status_code == 400
    assert User.query.filter(User.email.like("u%@x.com")).count() == 0


def test_user_listing_scope_and_filters(client, tenants):
    emails = lambda user, **q: sorted(
        u["email"] for u in client.get('/api/users', query_string=q, headers=auth_headers(user)).get_json()["data"]
    )
    assert emails(tenants.dept_admin) == ['dept@x.com', 'member@x.com']
    assert emails(tenants.admin_x, role='site_admin') == ['site@x.com']
    assert emails(tenants.admin_x, search='MEMBER') == ['member@x.com']
    assert client.get('/api/users', headers=auth_headers(tenants.member)).status_code == 403


def test_user_reads_only_itself(client, tenants):
    headers = auth_headers(tenants.member)
    assert client.get(f'/api/users/{tenants.member.user_id}', headers=headers).status_code == 200
    assert client.get(f'/api/users/{tenants.dept_admin.user_id}', headers=headers).status_code == 403


def test_update_user_role_and_placement(client, tenants):
    headers = auth_headers(tenants.admin_x)
    resp = client.put(f'/api/users/{tenants.member.user_id}', headers=headers, json={
        "role": "department_admin", "site_id": tenants.s2.site_id,
    })
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["role"] == "department_admin"
    assert body["site_id"] == tenants.s2.site_id
    assert body["department_id"] is None

    escalate = client.put(f'/api/users/{tenants.member.user_id}', headers=headers, json={"role": "super_admin"})
    assert escalate.status_code == 403


def test_cannot_delete_self(client, tenants):
    resp = client.delete(f'/api/users/{tenants.admin_x.user_id}', headers=auth_headers(tenants.admin_x))
    assert resp.status_code == 400


def test_deleted_user_token_is_rejected(client, tenants):
    victim = make_user('user', tenants.x, email='gone@x.com')
    headers = auth_headers(victim)

    assert client.delete(f'/api/users/{victim.user_id}', headers=auth_headers(tenants.admin_x)).status_code == 200
    assert client.get('/api/auth/me', headers=headers).status_code == 401


def test_department_admin_cannot_change_departments(client, tenants):
    headers = auth_headers(tenants.dept_admin)
    dept_id = tenants.d1.department_id

    assert client.delete(f'/api/departments/{dept_id}', headers=headers).status_code == 403
    assert client.put(f'/api/departments/{dept_id}', headers=headers, json={"name": "Renamed"}).status_code == 403
    created = client.post('/api/departments', headers=headers,
                          json={"name": "Side", "site_id": tenants.s1.site_id})
    assert created.status_code == 403

    assert client.get(f'/api/departments/{dept_id}', headers=headers).status_code == 200
    assert db.session.get(Department, dept_id).name == 'D1'
