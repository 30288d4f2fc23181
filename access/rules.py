"""
Access predicates per collection operation. Each returns True, False, or a
where-constraint the store ANDs into the query (read) or checks against the
stored document (update/delete).
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

AccessResult = Union[bool, Dict[str, Any]]
AccessFn = Callable[[Optional[Dict[str, Any]], Optional[Dict[str, Any]]], AccessResult]


def relation_id(value: Any) -> Any:
    """Relationship values may be a raw id or a populated object carrying one."""
    if isinstance(value, dict):
        return value.get("id")
    return value


def is_admin(user: Optional[Dict[str, Any]]) -> bool:
    if not user:
        return False
    roles = user.get("roles")
    if isinstance(roles, list):
        return "admin" in roles
    return roles == "admin"


def _user_tenant(user: Optional[Dict[str, Any]]) -> Any:
    if not user:
        return None
    return relation_id(user.get("tenant"))


def _tenant_constraint(user, data=None) -> AccessResult:
    if is_admin(user):
        return True
    tenant_id = _user_tenant(user)
    if tenant_id:
        return {"tenant": {"equals": tenant_id}}
    return False


def _public_read(status: str) -> AccessFn:
    def read(user, data=None) -> AccessResult:
        if is_admin(user):
            return True
        tenant_id = _user_tenant(user)
        if tenant_id:
            return {"tenant": {"equals": tenant_id}}
        return {"status": {"equals": status}}
    return read


def _tenant_create(user, data=None) -> AccessResult:
    if is_admin(user):
        return True
    tenant_id = _user_tenant(user)
    if tenant_id:
        return relation_id((data or {}).get("tenant")) == tenant_id
    return False


def _admin_only(user, data=None) -> AccessResult:
    return is_admin(user)


def _allow(user, data=None) -> AccessResult:
    return True


def _own_tenant_record(user, data=None) -> AccessResult:
    if is_admin(user):
        return True
    tenant_id = _user_tenant(user)
    if tenant_id:
        return {"id": {"equals": tenant_id}}
    return False


@dataclass(frozen=True)
class AccessRules:
    read: AccessFn
    create: AccessFn
    update: AccessFn
    delete: AccessFn

    def check(self, operation: str, user: Optional[Dict[str, Any]], data: Optional[Dict[str, Any]] = None) -> AccessResult:
        return getattr(self, operation)(user, data)


# Pages, homepages, posts, menus, headers, footers
tenant_access = AccessRules(
    read=_public_read("published"),
    create=_tenant_create,
    update=_tenant_constraint,
    delete=_tenant_constraint,
)

form_access = AccessRules(
    read=_public_read("active"),
    create=_tenant_create,
    update=_tenant_constraint,
    delete=_tenant_constraint,
)

tenant_read_only = AccessRules(
    read=_own_tenant_record,
    create=_admin_only,
    update=_admin_only,
    delete=_admin_only,
)

# Media files are public for the frontend, writes are tenant-scoped
media_access = AccessRules(
    read=_allow,
    create=_tenant_create,
    update=_tenant_constraint,
    delete=_tenant_constraint,
)

# Anyone may submit a form, only the tenant sees submissions
submission_access = AccessRules(
    read=_tenant_constraint,
    create=_allow,
    update=_tenant_constraint,
    delete=_tenant_constraint,
)
