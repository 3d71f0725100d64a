"""Public catalog, freelancer directory and owner submissions.

Listings submitted here start ``pending`` and only appear in the catalog
once an admin approves them. Likewise a freelancer is listed only after
their account is approved.
"""

from fastapi import APIRouter, Query, Request, status

from ..auth import CurrentUser
from ..database import HIRE_REQUESTS_TABLE, JOBS_TABLE, SERVICES_TABLE, USERS_TABLE
from ..errors import NotFound, ValidationError
from ..logging_config import get_logger
from ..models import (
    HireRequest,
    HireRequestCreate,
    HireRequestsOverview,
    Job,
    JobCreate,
    Service,
    ServiceCreate,
    UserProfile,
)
from ..rate_limit import limiter, submission_limit
from ..repository import Repository

logger = get_logger("apna.catalog")
router = APIRouter(prefix="/api", tags=["catalog"])

# Catalog visibility
PUBLIC_SERVICE_FILTERS = {"status": "approved", "is_active": True}
PUBLIC_JOB_FILTERS = {"status": "open"}
FREELANCER_FILTERS = {"is_freelancer": True, "status": "approved"}
FREELANCER_SEARCH_COLUMNS = ("first_name", "last_name", "bio")


def _is_public_service(service: Service) -> bool:
    return service.status == "approved" and service.is_active


# =============================================================================
# Services
# =============================================================================


@router.get("/services", response_model=list[Service])
async def list_services(
    repository: Repository,
    category_id: int | None = Query(default=None, alias="categoryId"),
    search: str | None = Query(default=None, max_length=100),
):
    """Approved, active services."""
    return await repository.list_public(
        SERVICES_TABLE, PUBLIC_SERVICE_FILTERS, category_id=category_id, search=search
    )


@router.get("/services/by-freelancer/{freelancer_id}", response_model=list[Service])
async def list_freelancer_services(freelancer_id: str, repository: Repository):
    """Approved, active services offered by one freelancer."""
    return await repository.list_public(
        SERVICES_TABLE, {**PUBLIC_SERVICE_FILTERS, "freelancer_id": freelancer_id}
    )


@router.get("/services/{service_id}", response_model=Service)
async def get_service(service_id: int, repository: Repository):
    service = await repository.get(SERVICES_TABLE, service_id)
    if service is None or not _is_public_service(service):
        raise NotFound("Service not found")
    return service


@router.post("/services", response_model=Service, status_code=status.HTTP_201_CREATED)
@limiter.limit(submission_limit)
async def create_service(
    request: Request,
    payload: ServiceCreate,
    user: CurrentUser,
    repository: Repository,
):
    """Submit a service for review. It stays hidden until approved."""
    fields = {
        **payload.to_row(),
        "freelancer_id": user.user_id,
        "status": "pending",
        "is_active": False,
    }
    service = await repository.insert(SERVICES_TABLE, fields)
    logger.info(f"Service {service.id} submitted by {user.user_id}")
    return service


# =============================================================================
# Jobs
# =============================================================================


@router.get("/jobs", response_model=list[Job])
async def list_jobs(
    repository: Repository,
    category_id: int | None = Query(default=None, alias="categoryId"),
    search: str | None = Query(default=None, max_length=100),
):
    """Jobs that have been approved and are open."""
    return await repository.list_public(
        JOBS_TABLE, PUBLIC_JOB_FILTERS, category_id=category_id, search=search
    )


@router.get("/jobs/{job_id}", response_model=Job)
async def get_job(job_id: int, repository: Repository):
    job = await repository.get(JOBS_TABLE, job_id)
    if job is None or job.status != "open":
        raise NotFound("Job not found")
    return job


@router.post("/jobs", response_model=Job, status_code=status.HTTP_201_CREATED)
@limiter.limit(submission_limit)
async def create_job(
    request: Request,
    payload: JobCreate,
    user: CurrentUser,
    repository: Repository,
):
    """Submit a job posting for review."""
    fields = {**payload.to_row(), "client_id": user.user_id, "status": "pending"}
    job = await repository.insert(JOBS_TABLE, fields)
    logger.info(f"Job {job.id} submitted by {user.user_id}")
    return job


# =============================================================================
# Freelancers
# =============================================================================


@router.get("/freelancers", response_model=list[UserProfile])
async def list_freelancers(
    repository: Repository,
    search: str | None = Query(default=None, max_length=100),
):
    """Approved freelancers, best rated first."""
    return await repository.list_public(
        USERS_TABLE,
        FREELANCER_FILTERS,
        search=search,
        search_columns=FREELANCER_SEARCH_COLUMNS,
        order_by="rating",
    )


@router.get("/freelancers/top", response_model=list[UserProfile])
async def top_freelancers(
    repository: Repository,
    limit: int = Query(default=8, ge=1, le=50),
):
    return await repository.list_public(
        USERS_TABLE, FREELANCER_FILTERS, order_by="rating", limit=limit
    )


@router.get("/users/{user_id}", response_model=UserProfile)
async def get_user(user_id: str, repository: Repository):
    """Public profile of an approved user."""
    user = await repository.get(USERS_TABLE, user_id)
    if user is None or user.status != "approved":
        raise NotFound("User not found")
    return user


# =============================================================================
# Hire requests
# =============================================================================


@router.post("/hire-requests", response_model=HireRequest, status_code=status.HTTP_201_CREATED)
@limiter.limit(submission_limit)
async def create_hire_request(
    request: Request,
    payload: HireRequestCreate,
    user: CurrentUser,
    repository: Repository,
):
    """Ask to hire a freelancer. An admin reviews the request first."""
    if payload.freelancer_id == user.user_id:
        raise ValidationError("You cannot send a hire request to yourself")
    fields = {**payload.to_row(), "client_id": user.user_id, "status": "pending"}
    hire_request = await repository.insert(HIRE_REQUESTS_TABLE, fields)
    logger.info(f"Hire request {hire_request.id} submitted by {user.user_id}")
    return hire_request


@router.get("/hire-requests/mine", response_model=HireRequestsOverview)
async def my_hire_requests(user: CurrentUser, repository: Repository):
    """The caller's hire requests as client and as freelancer."""
    as_client = await repository.list_by_owner(HIRE_REQUESTS_TABLE, "client_id", user.user_id)
    as_freelancer = await repository.list_by_owner(
        HIRE_REQUESTS_TABLE, "freelancer_id", user.user_id
    )
    return HireRequestsOverview(as_client=as_client, as_freelancer=as_freelancer)
