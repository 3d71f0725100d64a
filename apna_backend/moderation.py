"""Listing moderation workflow.

Every moderated entity is created ``pending`` by its owner. An admin then
applies one transition:

    pending --approve--> approved   (jobs: open; services also is_active=True)
    pending --reject-->  rejected   (services also is_active=False)

Each transition is a single update that stamps ``approved_by`` and
``approved_at`` alongside the status, followed by an append to the
``admin_actions`` audit log. The audit append is best-effort: a failure is
logged and does not undo the status change.

There is no guard on the current status. Re-applying a transition to a
record that already left ``pending`` re-stamps it and writes another audit
entry; two admins racing on one record resolve as last write wins.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated

from fastapi import Depends

from .database import HIRE_REQUESTS_TABLE, JOBS_TABLE, SERVICES_TABLE, USERS_TABLE
from .errors import NotFound, ValidationError
from .logging_config import get_logger, log_moderation_event
from .models import AdminAction, CamelModel
from .repository import MarketplaceRepository, Repository

logger = get_logger("apna.moderation")


class EntityKind(str, Enum):
    """Kinds of records that go through moderation."""

    USER = "user"
    SERVICE = "service"
    JOB = "job"
    HIRE_REQUEST = "hire_request"


@dataclass(frozen=True)
class ModerationRule:
    """How one entity kind moves out of ``pending``."""

    table: str
    label: str
    approved_status: str
    approve_details: str
    reject_details: str | None = None  # None: kind cannot be rejected
    approve_fields: dict = field(default_factory=dict)
    reject_fields: dict = field(default_factory=dict)
    reason_column: str | None = None
    exclude_admins: bool = False

    @property
    def rejectable(self) -> bool:
        return self.reject_details is not None


RULES: dict[EntityKind, ModerationRule] = {
    EntityKind.USER: ModerationRule(
        table=USERS_TABLE,
        label="User",
        approved_status="approved",
        approve_details="User approved",
        reject_details="User rejected",
        exclude_admins=True,
    ),
    EntityKind.SERVICE: ModerationRule(
        table=SERVICES_TABLE,
        label="Service",
        approved_status="approved",
        approve_details="Service approved and made active",
        reject_details="Service rejected",
        approve_fields={"is_active": True},
        reject_fields={"is_active": False},
        reason_column="rejection_reason",
    ),
    EntityKind.JOB: ModerationRule(
        table=JOBS_TABLE,
        label="Job",
        approved_status="open",
        approve_details="Job approved and opened",
    ),
    EntityKind.HIRE_REQUEST: ModerationRule(
        table=HIRE_REQUESTS_TABLE,
        label="Hire request",
        approved_status="approved",
        approve_details="Hire request approved",
        reject_details="Hire request rejected",
        reason_column="admin_response",
    ),
}

PENDING = "pending"
REJECTED = "rejected"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ModerationService:
    """Moves marketplace records out of ``pending`` on behalf of an admin."""

    def __init__(self, repository: MarketplaceRepository):
        self._repository = repository

    async def list_pending(self, kind: EntityKind) -> list[CamelModel]:
        """All records of ``kind`` still awaiting review, newest first."""
        rule = RULES[kind]
        return await self._repository.list_by_status(
            rule.table, PENDING, exclude_admins=rule.exclude_admins
        )

    async def approve(self, kind: EntityKind, target_id: int | str, admin_id: str) -> CamelModel:
        """Approve a record and return it as updated.

        Raises:
            NotFound: No record of ``kind`` has ``target_id``.
        """
        rule = RULES[kind]
        fields = {"status": rule.approved_status, **rule.approve_fields}
        record = await self._transition(rule, target_id, admin_id, fields)
        await self._record(admin_id, f"approve_{kind.value}", kind, target_id, rule.approve_details)
        return record

    async def reject(
        self,
        kind: EntityKind,
        target_id: int | str,
        admin_id: str,
        reason: str | None = None,
    ) -> CamelModel:
        """Reject a record, storing ``reason`` where the kind has a column for it.

        Raises:
            ValidationError: The kind has no rejected state (jobs).
            NotFound: No record of ``kind`` has ``target_id``.
        """
        rule = RULES[kind]
        if not rule.rejectable:
            raise ValidationError(f"{rule.label} records cannot be rejected")

        fields = {"status": REJECTED, **rule.reject_fields}
        if rule.reason_column:
            fields[rule.reason_column] = reason
        record = await self._transition(rule, target_id, admin_id, fields)

        details = f"{rule.reject_details}: {reason}" if reason else rule.reject_details
        await self._record(admin_id, f"reject_{kind.value}", kind, target_id, details)
        return record

    async def _transition(
        self, rule: ModerationRule, target_id: int | str, admin_id: str, fields: dict
    ) -> CamelModel:
        now = _utc_now()
        update = {**fields, "approved_by": admin_id, "approved_at": now, "updated_at": now}
        record = await self._repository.update(rule.table, target_id, update)
        if record is None:
            raise NotFound(f"{rule.label} not found")
        return record

    async def _record(
        self,
        admin_id: str,
        action: str,
        kind: EntityKind,
        target_id: int | str,
        details: str,
    ) -> None:
        entry = AdminAction(
            admin_id=admin_id,
            action=action,
            target_type=kind.value,
            target_id=str(target_id),
            details=details,
        )
        try:
            await self._repository.insert_admin_action(entry)
        except Exception as e:
            # The status change already happened; the audit gap is only logged.
            logger.error(
                f"Failed to record admin action {action} on {kind.value}:{target_id}: "
                f"{type(e).__name__}: {e}"
            )
            return
        log_moderation_event(admin_id, action, kind.value, str(target_id))


def get_moderation_service(repository: Repository) -> ModerationService:
    """FastAPI dependency for the moderation workflow."""
    return ModerationService(repository)


Moderation = Annotated[ModerationService, Depends(get_moderation_service)]
