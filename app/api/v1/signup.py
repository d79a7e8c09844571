"""Self-service signup — slug checks and tenant provisioning."""

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.api.deps import Pipeline, Validator, request_origin
from app.core.errors import ErrorReason
from app.services.provisioning import ProvisioningResult, SignupData
from app.services.slugs import SlugValidation, suggest_slugs

router = APIRouter(prefix="/signup", tags=["signup"])

# Failure reason → HTTP status; anything unlisted is a server-side failure
_FAILURE_STATUS = {
    ErrorReason.INVALID_SUBDOMAIN: status.HTTP_400_BAD_REQUEST,
    ErrorReason.IDENTITY_CREATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorReason.RESERVED_OR_TAKEN: status.HTTP_409_CONFLICT,
    ErrorReason.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@router.get("/slug-availability", response_model=SlugValidation)
async def check_slug_availability(
    validator: Validator,
    slug: str = Query(max_length=100),
) -> SlugValidation:
    """Format and availability check for a candidate subdomain."""
    return await validator.validate(slug.strip().lower())


@router.get("/slug-suggestions", response_model=list[str])
async def get_slug_suggestions(
    validator: Validator,
    company_name: str = Query(min_length=1, max_length=255),
    limit: int = Query(default=5, ge=1, le=20),
) -> list[str]:
    """Candidate slugs for a company name, filtered to the available ones."""
    available: list[str] = []
    for candidate in suggest_slugs(company_name, limit=limit * 2):
        result = await validator.validate(candidate)
        if result.available:
            available.append(candidate)
        if len(available) == limit:
            break
    return available


@router.post("", response_model=ProvisioningResult, status_code=status.HTTP_201_CREATED)
async def create_signup(
    body: SignupData,
    request: Request,
    pipeline: Pipeline,
) -> ProvisioningResult:
    """Provision a new tenant with its admin account."""
    result = await pipeline.provision(body, origin=request_origin(request))
    if not result.success:
        raise HTTPException(
            status_code=_FAILURE_STATUS.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=result.model_dump(mode="json"),
        )
    return result
