"""
Access Control Policy - one decision function for every tenant-scoped check.

Given who is asking (an ``Actor``), what they are asking about (the target's
``Scope``) and what they want to do with it, ``decide`` returns a ``Decision``.
It never raises for a well-formed input and never touches the database, so
request handlers, services and tests all call it the same way.

Role hierarchy (highest first):
    super_admin > company_admin > site_admin > department_admin > user

Rules:
    super_admin       always allowed
    company_admin     target.company_id == actor.company_id
    site_admin        target.site_id == actor.site_id
    department_admin  target.department_id == actor.department_id
    user              reads of its own records, and survey-taking

Deleting a company, site or user additionally requires company_admin or above.
Creating, renaming or deleting a department requires site_admin or above.
"""
from collections import namedtuple

SUPER_ADMIN = 'super_admin'
COMPANY_ADMIN = 'company_admin'
SITE_ADMIN = 'site_admin'
DEPARTMENT_ADMIN = 'department_admin'
USER = 'user'

ROLES = (SUPER_ADMIN, COMPANY_ADMIN, SITE_ADMIN, DEPARTMENT_ADMIN, USER)
ADMIN_ROLES = (SUPER_ADMIN, COMPANY_ADMIN, SITE_ADMIN, DEPARTMENT_ADMIN)

# Higher rank = wider scope
ROLE_RANK = {role: rank for rank, role in enumerate(reversed(ROLES))}

READ = 'read'
WRITE = 'write'
DELETE = 'delete'
TAKE = 'take'

ACTIONS = (READ, WRITE, DELETE, TAKE)

DESTRUCTIVE = {
    (DELETE, 'company'),
    (DELETE, 'site'),
    (DELETE, 'user'),
}

# Lowest role that may change a resource, even inside its own scope
WRITE_FLOOR = {
    'department': SITE_ADMIN,
}


Actor = namedtuple('Actor', 'user_id role company_id site_id department_id')
Actor.__new__.__defaults__ = (None, None, None)

Scope = namedtuple('Scope', 'company_id site_id department_id owner_id')
Scope.__new__.__defaults__ = (None, None, None, None)


class Decision(namedtuple('Decision', 'allowed reason')):
    __slots__ = ()

    def __bool__(self):
        return self.allowed


def allow(reason=None):
    return Decision(True, reason)


def deny(reason):
    return Decision(False, reason)


def outranks_or_equals(role, minimum):
    """True when ``role`` sits at or above ``minimum`` in the hierarchy."""
    if role not in ROLE_RANK or minimum not in ROLE_RANK:
        return False
    return ROLE_RANK[role] >= ROLE_RANK[minimum]


def can_assign_role(actor_role, role):
    """An actor may hand out its own role or anything below it."""
    if role not in ROLE_RANK:
        return False
    return outranks_or_equals(actor_role, role)


def _same(actor_value, target_value):
    return actor_value is not None and actor_value == target_value


def decide(actor, target, action, resource=None):
    """
    Decide whether ``actor`` may perform ``action`` on a ``resource`` whose
    tenant placement is ``target``.

    Args:
        actor (Actor): the caller
        target (Scope): owning (company, site, department) of the target,
            plus the owning user id where one exists
        action (str): read | write | delete | take
        resource (str): company | site | department | user | survey |
            template | question | response

    Returns:
        Decision: allowed flag plus a reason string for logging
    """
    if actor.role not in ROLE_RANK:
        return deny(f"unknown role {actor.role!r}")
    if action not in ACTIONS:
        return deny(f"unknown action {action!r}")

    if actor.role == SUPER_ADMIN:
        return allow("super_admin")

    if (action, resource) in DESTRUCTIVE and not outranks_or_equals(actor.role, COMPANY_ADMIN):
        return deny(f"{actor.role} may not {action} a {resource}")

    floor = WRITE_FLOOR.get(resource)
    if floor and action in (WRITE, DELETE) and not outranks_or_equals(actor.role, floor):
        return deny(f"{action} on a {resource} needs {floor} or above")

    if action == TAKE:
        if target.company_id is None or _same(actor.company_id, target.company_id):
            return allow("survey is open to the actor's tenant")
        return deny("survey belongs to another company")

    if actor.role == COMPANY_ADMIN:
        if _same(actor.company_id, target.company_id):
            return allow("target inside actor's company")
        return deny("target outside actor's company")

    if actor.role == SITE_ADMIN:
        if _same(actor.site_id, target.site_id):
            return allow("target inside actor's site")
        return deny("target outside actor's site")

    if actor.role == DEPARTMENT_ADMIN:
        if _same(actor.department_id, target.department_id):
            return allow("target inside actor's department")
        return deny("target outside actor's department")

    # USER: self-scoped reads only
    if action == READ and _same(actor.user_id, target.owner_id):
        return allow("own record")
    return deny("user may only read its own records")
