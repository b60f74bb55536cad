"""Report lifecycle policy.

Single source of truth for report status transitions: which moves are legal,
what input each one needs, and which fields each one writes.

    pending --assign--> assigned --resolve--> resolved --reopen--> pending
       \\________________ resolve (optional) ______________/

All timestamps are written as ``SERVER_TIMESTAMP`` so the store clock, not
the caller's clock, decides them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from trashmap.exceptions import InvalidTransitionError, ValidationError
from trashmap.stores.base import SERVER_TIMESTAMP


class ReportStatus(StrEnum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    RESOLVED = "resolved"


@dataclass(frozen=True, slots=True)
class Transition:
    source: ReportStatus
    target: ReportStatus
    requires_assignee: bool = False
    sets_resolved_at: bool = False
    clears_resolved_at: bool = False


ASSIGN = Transition(ReportStatus.PENDING, ReportStatus.ASSIGNED, requires_assignee=True)
RESOLVE = Transition(ReportStatus.ASSIGNED, ReportStatus.RESOLVED, sets_resolved_at=True)
# assigned_to is kept on reopen so the last assignee stays visible
REOPEN = Transition(ReportStatus.RESOLVED, ReportStatus.PENDING, clears_resolved_at=True)
DIRECT_RESOLVE = Transition(ReportStatus.PENDING, ReportStatus.RESOLVED, sets_resolved_at=True)

TRANSITIONS: dict[tuple[ReportStatus, ReportStatus], Transition] = {
    (t.source, t.target): t for t in (ASSIGN, RESOLVE, REOPEN)
}


def parse_status(value: Any) -> ReportStatus:
    """Coerce a raw value into a ReportStatus, raising ValidationError if illegal."""
    try:
        return ReportStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid report status: {value!r}",
            details={"field": "status", "allowed": [s.value for s in ReportStatus]},
        )


def normalize_assignee(target: ReportStatus, assigned_to: str | None) -> str | None:
    """
    Validate the assignee for a target status.

    Moving into ``assigned`` needs a non-blank assignee. For any other target
    the assignee is ignored and None is returned.
    """
    if target != ReportStatus.ASSIGNED:
        return None
    assignee = (assigned_to or "").strip()
    if not assignee:
        raise ValidationError(
            "An assignee is required to assign a report",
            details={"field": "assigned_to"},
        )
    return assignee


def get_transition(
    current: ReportStatus, target: ReportStatus, allow_direct_resolve: bool = True
) -> Transition:
    """Look up the transition from ``current`` to ``target`` or raise InvalidTransitionError."""
    transition = TRANSITIONS.get((current, target))
    if transition is None and allow_direct_resolve and (current, target) == (
        DIRECT_RESOLVE.source,
        DIRECT_RESOLVE.target,
    ):
        transition = DIRECT_RESOLVE
    if transition is None:
        raise InvalidTransitionError(current.value, target.value)
    return transition


def build_status_update(transition: Transition, assigned_to: str | None = None) -> dict[str, Any]:
    """Return the partial record update a transition produces."""
    values: dict[str, Any] = {
        "status": transition.target,
        "updated_at": SERVER_TIMESTAMP,
    }
    if transition.requires_assignee:
        values["assigned_to"] = assigned_to
    if transition.sets_resolved_at:
        values["resolved_at"] = SERVER_TIMESTAMP
    if transition.clears_resolved_at:
        values["resolved_at"] = None
    return values


def build_priority_update(priority: Any) -> dict[str, Any]:
    """Priority changes are always legal and only touch priority and updated_at."""
    return {"priority": priority, "updated_at": SERVER_TIMESTAMP}
