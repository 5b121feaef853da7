"""
Glue between the pure access policy and the rest of the service layer.

``authorize`` turns a deny decision into an ``AuthorizationError``;
``scope_filter`` expresses the same rules as a SQL criterion so list
endpoints return exactly the rows ``decide`` would allow.
"""
import logging

from sqlalchemy import false

from qualitivate.errors import AuthorizationError
from qualitivate.services.access_policy import (
    decide, SUPER_ADMIN, COMPANY_ADMIN, SITE_ADMIN, DEPARTMENT_ADMIN, USER,
)

logger = logging.getLogger(__name__)


def authorize(actor, target, action, resource=None):
    decision = decide(actor, target, action, resource)
    if not decision:
        logger.info(
            "Access denied: user=%s role=%s action=%s resource=%s reason=%s",
            actor.user_id, actor.role, action, resource, decision.reason,
        )
        raise AuthorizationError()
    return decision


def _match(column, value):
    if column is None or value is None:
        return false()
    return column == value


def scope_filter(actor, company_col=None, site_col=None, department_col=None, owner_col=None):
    """
    SQL criterion for rows the actor may read, or None for "no restriction".

    Columns that a model does not carry are passed as None, in which case the
    matching role sees nothing (the policy would deny it as well).
    """
    if actor.role == SUPER_ADMIN:
        return None
    if actor.role == COMPANY_ADMIN:
        return _match(company_col, actor.company_id)
    if actor.role == SITE_ADMIN:
        return _match(site_col, actor.site_id)
    if actor.role == DEPARTMENT_ADMIN:
        return _match(department_col, actor.department_id)
    if actor.role == USER:
        return _match(owner_col, actor.user_id)
    return false()


def apply_scope(query, actor, **columns):
    criterion = scope_filter(actor, **columns)
    if criterion is None:
        return query
    return query.filter(criterion)
