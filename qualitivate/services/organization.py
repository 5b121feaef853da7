"""
Tenant hierarchy services: companies, sites, departments and users.

List helpers return queries already narrowed to the caller's scope; the API
layer paginates them. Single-record helpers load, authorize and then act.
"""
import logging

from flask import current_app
from marshmallow import ValidationError
from sqlalchemy import or_
from werkzeug.security import generate_password_hash

from qualitivate.extensions import db
from qualitivate.errors import (
    AuthorizationError, ConflictError, NotFoundError, QualitivateError, ValidationFailed,
)
from qualitivate.models import Company, Site, Department, User
from qualitivate.services.access_policy import (
    Scope, SUPER_ADMIN, COMPANY_ADMIN, SITE_ADMIN, DEPARTMENT_ADMIN, ADMIN_ROLES,
    READ, WRITE, DELETE, can_assign_role, outranks_or_equals,
)
from qualitivate.services.permissions import authorize, apply_scope

logger = logging.getLogger(__name__)


def _get_or_404(model, object_id, label):
    obj = db.session.get(model, object_id) if object_id else None
    if not obj:
        raise NotFoundError(f"{label} not found")
    return obj


# Companies

def list_companies(actor, search=None):
    query = Company.query
    if actor.role != SUPER_ADMIN:
        # Members see their own company record and nothing else
        query = query.filter(Company.company_id == actor.company_id)
    if search:
        query = query.filter(Company.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Company.name)


def get_company(actor, company_id):
    company = _get_or_404(Company, company_id, "Company")
    if actor.role != SUPER_ADMIN and actor.company_id != company.company_id:
        authorize(actor, company.tenant_scope(), READ, 'company')
    return company


def company_stats(company):
    return {
        "sites": Site.query.filter_by(company_id=company.company_id).count(),
        "users": User.query.filter_by(company_id=company.company_id).count(),
    }


def _ensure_slug_free(slug, company_id=None):
    query = Company.query.filter(Company.slug == slug)
    if company_id:
        query = query.filter(Company.company_id != company_id)
    if query.first():
        raise ConflictError("Company slug already exists")


def create_company(actor, data):
    authorize(actor, Scope(), WRITE, 'company')
    _ensure_slug_free(data['slug'])

    company = Company(
        name=data['name'].strip(),
        slug=data['slug'],
        activity=data.get('activity'),
        address=data.get('address'),
        city=data.get('city'),
        sites_count=data.get('sites_count') or 0,
        employees_count=data.get('employees_count') or 0,
        settings=data.get('settings') or {},
    )
    db.session.add(company)
    db.session.commit()
    logger.info("Company %s (%s) created by %s", company.company_id, company.slug, actor.user_id)
    return company


def update_company(actor, company_id, data):
    company = _get_or_404(Company, company_id, "Company")
    authorize(actor, company.tenant_scope(), WRITE, 'company')
    if 'slug' in data and data['slug'] != company.slug:
        _ensure_slug_free(data['slug'], company.company_id)

    for field in ('name', 'slug', 'activity', 'address', 'city', 'sites_count',
                  'employees_count', 'settings'):
        if field in data:
            setattr(company, field, data[field])
    db.session.commit()
    return company


def delete_company(actor, company_id):
    company = _get_or_404(Company, company_id, "Company")
    if actor.role != SUPER_ADMIN:
        logger.info("Company delete denied for %s (%s)", actor.user_id, actor.role)
        raise AuthorizationError()
    authorize(actor, company.tenant_scope(), DELETE, 'company')
    db.session.delete(company)
    db.session.commit()
    logger.info("Company %s deleted by %s", company_id, actor.user_id)


# Sites

def list_sites(actor, company_id=None, search=None):
    query = apply_scope(Site.query, actor, company_col=Site.company_id, site_col=Site.site_id)
    if company_id:
        query = query.filter(Site.company_id == company_id)
    if search:
        query = query.filter(Site.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Site.name)


def get_site(actor, site_id):
    site = _get_or_404(Site, site_id, "Site")
    authorize(actor, site.tenant_scope(), READ, 'site')
    return site


def create_site(actor, data):
    if actor.role == SUPER_ADMIN:
        company = _get_or_404(Company, data.get('company_id'), "Company")
        company_id = company.company_id
    else:
        company_id = actor.company_id
    authorize(actor, Scope(company_id=company_id), WRITE, 'site')

    site = Site(company_id=company_id, name=data['name'].strip(), location=data.get('location'))
    db.session.add(site)
    db.session.commit()
    logger.info("Site %s created in company %s", site.site_id, company_id)
    return site


def update_site(actor, site_id, data):
    site = _get_or_404(Site, site_id, "Site")
    authorize(actor, site.tenant_scope(), WRITE, 'site')
    for field in ('name', 'location'):
        if field in data:
            setattr(site, field, data[field])
    db.session.commit()
    return site


def delete_site(actor, site_id):
    site = _get_or_404(Site, site_id, "Site")
    authorize(actor, site.tenant_scope(), DELETE, 'site')
    db.session.delete(site)
    db.session.commit()
    logger.info("Site %s deleted by %s", site_id, actor.user_id)


# Departments

def list_departments(actor, site_id=None, search=None):
    query = apply_scope(
        Department.query.join(Site), actor,
        company_col=Site.company_id,
        site_col=Department.site_id,
        department_col=Department.department_id,
    )
    if site_id:
        query = query.filter(Department.site_id == site_id)
    if search:
        query = query.filter(Department.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Department.name)


def get_department(actor, department_id):
    department = _get_or_404(Department, department_id, "Department")
    authorize(actor, department.tenant_scope(), READ, 'department')
    return department


def create_department(actor, data):
    site = _get_or_404(Site, data['site_id'], "Site")
    authorize(actor, site.tenant_scope(), WRITE, 'department')

    department = Department(site_id=site.site_id, name=data['name'].strip())
    db.session.add(department)
    db.session.commit()
    logger.info("Department %s created in site %s", department.department_id, site.site_id)
    return department


def update_department(actor, department_id, data):
    department = _get_or_404(Department, department_id, "Department")
    authorize(actor, department.tenant_scope(), WRITE, 'department')
    if 'name' in data:
        department.name = data['name'].strip()
    db.session.commit()
    return department


def delete_department(actor, department_id):
    department = _get_or_404(Department, department_id, "Department")
    authorize(actor, department.tenant_scope(), DELETE, 'department')
    db.session.delete(department)
    db.session.commit()
    logger.info("Department %s deleted by %s", department_id, actor.user_id)


# Users

def list_users(actor, role=None, site_id=None, department_id=None, search=None):
    if actor.role not in ADMIN_ROLES:
        raise AuthorizationError()
    query = apply_scope(
        User.query, actor,
        company_col=User.company_id,
        site_col=User.site_id,
        department_col=User.department_id,
        owner_col=User.user_id,
    )
    if role:
        query = query.filter(User.role == role)
    if site_id:
        query = query.filter(User.site_id == site_id)
    if department_id:
        query = query.filter(User.department_id == department_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            User.email.ilike(pattern),
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
        ))
    return query.order_by(User.created_at.desc())


def get_user(actor, user_id):
    user = _get_or_404(User, user_id, "User")
    authorize(actor, user.tenant_scope(), READ, 'user')
    return user


def resolve_placement(company_id, site_id, department_id):
    """
    Validate a (company, site, department) triple top-down and fill in the
    site from the department when only the department is given.
    """
    if company_id:
        _get_or_404(Company, company_id, "Company")

    department = None
    if department_id:
        department = _get_or_404(Department, department_id, "Department")
        if site_id and department.site_id != site_id:
            raise ValidationFailed("Department does not belong to the given site")
        site_id = department.site_id

    if site_id:
        site = _get_or_404(Site, site_id, "Site")
        if site.company_id != company_id:
            raise ValidationFailed("Site does not belong to the given company")

    return Scope(company_id, site_id, department_id)


def _placement_for(actor, data):
    """The caller's own placement is forced onto levels it cannot choose."""
    if actor.role == SUPER_ADMIN:
        return data.get('company_id'), data.get('site_id'), data.get('department_id')
    if actor.role == COMPANY_ADMIN:
        return actor.company_id, data.get('site_id'), data.get('department_id')
    if actor.role == SITE_ADMIN:
        return actor.company_id, actor.site_id, data.get('department_id')
    return actor.company_id, actor.site_id, actor.department_id


def _check_role_ceiling(actor, role):
    if not can_assign_role(actor.role, role):
        logger.info("Role %s not assignable by %s (%s)", role, actor.user_id, actor.role)
        raise AuthorizationError("You cannot assign a role above your own")


def _create_user(actor, data):
    if actor.role not in ADMIN_ROLES:
        raise AuthorizationError()
    role = data.get('role', 'user')
    _check_role_ceiling(actor, role)

    scope = resolve_placement(*_placement_for(actor, data))
    authorize(actor, Scope(scope.company_id, scope.site_id, scope.department_id), WRITE, 'user')

    email = data['email'].strip().lower()
    if User.query.filter_by(email=email).first():
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        password_hash=generate_password_hash(data['password']),
        first_name=data.get('first_name', ''),
        last_name=data.get('last_name', ''),
        role=role,
        company_id=scope.company_id,
        site_id=scope.site_id,
        department_id=scope.department_id,
        is_active=True,
    )
    db.session.add(user)
    return user


def invite_user(actor, data):
    user = _create_user(actor, data)
    db.session.commit()
    logger.info("User %s (%s) created by %s", user.user_id, user.role, actor.user_id)
    return user


def bulk_create_users(actor, rows, schema):
    """
    Create many users; each row succeeds or fails on its own.

    Returns:
        dict: {"created": [...], "failed": [{"index", "email", "error", "details"}]}
    """
    limit = current_app.config.get('MAX_BULK_USERS', 500)
    if len(rows) > limit:
        raise ValidationFailed(f"At most {limit} users can be created at once")
    if actor.role not in ADMIN_ROLES:
        raise AuthorizationError()

    created, failed = [], []
    for index, row in enumerate(rows):
        email = row.get('email') if isinstance(row, dict) else None
        try:
            data = schema.load(row)
            user = _create_user(actor, data)
            db.session.commit()
            created.append(user.to_dict())
        except ValidationError as err:
            db.session.rollback()
            failed.append({"index": index, "email": email, "error": "Validation failed", "details": err.messages})
        except QualitivateError as err:
            db.session.rollback()
            failed.append({"index": index, "email": email, "error": err.message, "details": err.details})

    logger.info("Bulk user import by %s: %d created, %d failed", actor.user_id, len(created), len(failed))
    return {"created": created, "failed": failed}


def update_user(actor, user_id, data):
    user = _get_or_404(User, user_id, "User")
    authorize(actor, user.tenant_scope(), WRITE, 'user')
    if user.user_id != actor.user_id and not outranks_or_equals(actor.role, user.role):
        raise AuthorizationError()

    if 'role' in data and data['role'] != user.role:
        if user.user_id == actor.user_id:
            raise ValidationFailed("You cannot change your own role")
        _check_role_ceiling(actor, data['role'])

    if 'site_id' in data or 'department_id' in data:
        site_id = data.get('site_id', user.site_id)
        department_id = data.get('department_id', user.department_id)
        if 'site_id' in data and 'department_id' not in data and site_id != user.site_id:
            # Moving to another site drops the old department
            department_id = None
        scope = resolve_placement(user.company_id, site_id, department_id)
        authorize(actor, Scope(scope.company_id, scope.site_id, scope.department_id), WRITE, 'user')
        user.site_id = scope.site_id
        user.department_id = scope.department_id

    for field in ('first_name', 'last_name', 'role', 'is_active'):
        if field in data:
            setattr(user, field, data[field])
    db.session.commit()
    return user


def delete_user(actor, user_id):
    user = _get_or_404(User, user_id, "User")
    if user.user_id == actor.user_id:
        raise ValidationFailed("You cannot delete your own account")
    authorize(actor, user.tenant_scope(), DELETE, 'user')
    if not outranks_or_equals(actor.role, user.role):
        raise AuthorizationError()
    db.session.delete(user)
    db.session.commit()
    logger.info("User %s deleted by %s", user_id, actor.user_id)
