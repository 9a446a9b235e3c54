"""
Authentication endpoints.

Login exchanges an email and password for a signed bearer token valid for
``jwt_expiry_hours``. Unknown emails and wrong passwords get the same 401.
"""

from fastapi import APIRouter, Depends

from finops.api.dependencies import get_auth_service
from finops.api.schemas import LoginRequest, LoginResponse, UserResponse
from finops.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["authentication"])


@router.post("/login", response_model=LoginResponse)
async def login_user(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user and return access token.
    """
    result = await auth_service.authenticate(login_data.email, login_data.password)

    return LoginResponse(token=result.token, user=UserResponse.from_summary(result.user))
