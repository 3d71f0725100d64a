"""Admin routes for listing moderation.

Every route requires an authenticated profile with ``is_admin``.
"""

from fastapi import APIRouter, Query

from ..auth import AdminUser
from ..models import (
    AdminAction,
    HireRequest,
    HireRequestRejectRequest,
    Job,
    RejectRequest,
    Service,
    UserProfile,
)
from ..moderation import EntityKind, Moderation
from ..repository import Repository

router = APIRouter(prefix="/api/admin", tags=["admin"])


# =============================================================================
# Pending queues
# =============================================================================


@router.get("/pending-users", response_model=list[UserProfile])
async def pending_users(admin: AdminUser, moderation: Moderation):
    """User registrations awaiting approval (admins excluded)."""
    return await moderation.list_pending(EntityKind.USER)


@router.get("/pending-services", response_model=list[Service])
async def pending_services(admin: AdminUser, moderation: Moderation):
    return await moderation.list_pending(EntityKind.SERVICE)


@router.get("/pending-jobs", response_model=list[Job])
async def pending_jobs(admin: AdminUser, moderation: Moderation):
    return await moderation.list_pending(EntityKind.JOB)


@router.get("/pending-hire-requests", response_model=list[HireRequest])
async def pending_hire_requests(admin: AdminUser, moderation: Moderation):
    return await moderation.list_pending(EntityKind.HIRE_REQUEST)


# =============================================================================
# Users
# =============================================================================


@router.post("/users/{user_id}/approve", response_model=UserProfile)
async def approve_user(user_id: str, admin: AdminUser, moderation: Moderation):
    return await moderation.approve(EntityKind.USER, user_id, admin.user_id)


@router.post("/users/{user_id}/reject", response_model=UserProfile)
async def reject_user(
    user_id: str,
    admin: AdminUser,
    moderation: Moderation,
    body: RejectRequest | None = None,
):
    """Reject a registration. The reason, if any, only goes to the audit log."""
    reason = body.reason if body else None
    return await moderation.reject(EntityKind.USER, user_id, admin.user_id, reason)


# =============================================================================
# Services
# =============================================================================


@router.post("/services/{service_id}/approve", response_model=Service)
async def approve_service(service_id: int, admin: AdminUser, moderation: Moderation):
    """Approve a service and make it active in the catalog."""
    return await moderation.approve(EntityKind.SERVICE, service_id, admin.user_id)


@router.post("/services/{service_id}/reject", response_model=Service)
async def reject_service(
    service_id: int,
    admin: AdminUser,
    moderation: Moderation,
    body: RejectRequest | None = None,
):
    reason = body.reason if body else None
    return await moderation.reject(EntityKind.SERVICE, service_id, admin.user_id, reason)


# =============================================================================
# Jobs
# =============================================================================


@router.post("/jobs/{job_id}/approve", response_model=Job)
async def approve_job(job_id: int, admin: AdminUser, moderation: Moderation):
    """Approve a job posting, opening it to freelancers."""
    return await moderation.approve(EntityKind.JOB, job_id, admin.user_id)


# =============================================================================
# Hire requests
# =============================================================================


@router.post("/hire-requests/{hire_request_id}/approve", response_model=HireRequest)
async def approve_hire_request(hire_request_id: int, admin: AdminUser, moderation: Moderation):
    return await moderation.approve(EntityKind.HIRE_REQUEST, hire_request_id, admin.user_id)


@router.post("/hire-requests/{hire_request_id}/reject", response_model=HireRequest)
async def reject_hire_request(
    hire_request_id: int,
    admin: AdminUser,
    moderation: Moderation,
    body: HireRequestRejectRequest | None = None,
):
    response = body.response if body else None
    return await moderation.reject(
        EntityKind.HIRE_REQUEST, hire_request_id, admin.user_id, response
    )


# =============================================================================
# Audit log
# =============================================================================


@router.get("/actions", response_model=list[AdminAction])
async def admin_actions(
    admin: AdminUser,
    repository: Repository,
    limit: int = Query(default=100, ge=1, le=500),
    target_type: EntityKind | None = Query(default=None, alias="targetType"),
    target_id: str | None = Query(default=None, alias="targetId", max_length=64),
):
    """Audit log of moderation actions, newest first."""
    return await repository.list_admin_actions(
        limit=limit,
        target_type=target_type.value if target_type else None,
        target_id=target_id,
    )
