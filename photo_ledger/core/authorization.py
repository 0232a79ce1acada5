from dataclasses import dataclass
from typing import Any, Optional

from photo_ledger.core.enums import Action, Role
from photo_ledger.exceptions import ActionNotAllowedException


@dataclass(frozen=True)
class Actor:
    id: str
    role: Role


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""


ROLE_CAPABILITIES: dict[Role, frozenset[Action]] = {
    Role.ADMIN: frozenset(
        {
            Action.VIEW_BALANCE,
            Action.VIEW_REVENUE,
            Action.LIST_WITHDRAWALS,
            Action.VIEW_WITHDRAWAL,
            Action.APPROVE_WITHDRAWAL,
            Action.REJECT_WITHDRAWAL,
            Action.COMPLETE_WITHDRAWAL,
            Action.MANAGE_PHOTOGRAPHER,
            Action.SET_COMMISSION,
        }
    ),
    Role.PHOTOGRAPHER: frozenset(
        {
            Action.VIEW_BALANCE,
            Action.VIEW_REVENUE,
            Action.LIST_WITHDRAWALS,
            Action.VIEW_WITHDRAWAL,
            Action.CREATE_WITHDRAWAL,
            Action.CANCEL_WITHDRAWAL,
            Action.MANAGE_PHOTOGRAPHER,
        }
    ),
    Role.BUYER: frozenset(),
}

# Roles whose capabilities only apply to resources they own.
OWNER_SCOPED_ROLES = frozenset({Role.PHOTOGRAPHER})


def resource_owner(resource: Any) -> Optional[str]:
    """Resolve the photographer owning a resource.

    Accepts a photographer id, or any object exposing ``photographer_id``.
    """
    if resource is None:
        return None
    if isinstance(resource, str):
        return resource
    return getattr(resource, "photographer_id", None)


def authorize(actor: Actor, action: Action, resource: Any = None) -> Decision:
    if action not in ROLE_CAPABILITIES.get(actor.role, frozenset()):
        return Decision(False, f"role {actor.role.value} lacks {action.value}")

    if actor.role in OWNER_SCOPED_ROLES:
        owner_id = resource_owner(resource)
        if owner_id is None:
            return Decision(False, "resource owner is unknown")
        if owner_id != actor.id:
            return Decision(False, "resource belongs to another photographer")

    return Decision(True)


def ensure_authorized(actor: Actor, action: Action, resource: Any = None) -> None:
    decision = authorize(actor, action, resource)
    if not decision.allowed:
        raise ActionNotAllowedException(actor.id, action.value, decision.reason)
