"""
First-run setup endpoints. Unauthenticated.
"""

from fastapi import APIRouter, Depends, status

from finops.api.dependencies import get_setup_service
from finops.api.schemas import (
    SetupAdminRequest,
    SetupAdminResponse,
    SetupStatusResponse,
    UserResponse,
)
from finops.services.setup_service import SetupService

router = APIRouter(prefix="/api/setup", tags=["setup"])


@router.get("/status", response_model=SetupStatusResponse)
async def get_setup_status(
    setup_service: SetupService = Depends(get_setup_service)
) -> SetupStatusResponse:
    """Report whether any user exists yet."""
    setup_status = await setup_service.get_status()
    return SetupStatusResponse(
        needs_setup=setup_status.needs_setup,
        user_count=setup_status.user_count,
        environment=setup_status.environment,
    )


@router.post("/admin", response_model=SetupAdminResponse, status_code=status.HTTP_201_CREATED)
async def create_admin_user(
    request: SetupAdminRequest,
    setup_service: SetupService = Depends(get_setup_service)
) -> SetupAdminResponse:
    """
    Create an admin user.

    Fails with 400 when email or password is missing, or the email is taken.
    """
    user = await setup_service.create_admin(request.email, request.password)

    return SetupAdminResponse(
        message="Admin user created successfully",
        user=UserResponse.from_summary(user),
    )
