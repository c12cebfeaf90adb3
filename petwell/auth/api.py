"""
Authentication API Endpoints

FastAPI router for registration, login, logout and email availability.
"""

from fastapi import APIRouter, Depends, Request, status

from ..api.responses import envelope
from ..core.logging import get_logger
from .dependencies import get_auth_service
from .models import LoginRequest, PrincipalDTO, RegisterRequest, Token
from .service import AuthService

logger = get_logger(__name__)

router = APIRouter(tags=["authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register new user

    Creates a client account and returns it together with an access token.
    """
    principal, token = await auth_service.register(payload)
    return envelope(
        request,
        status.HTTP_201_CREATED,
        "User registered successfully",
        data={
            "user": PrincipalDTO.from_principal(principal).model_dump(mode="json"),
            "token": token.model_dump(),
        }
    )


@router.post("/login", response_model=Token)
async def login(
    credentials: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Login user

    Authenticate with email/password and return a JWT access token.
    """
    _, token = await auth_service.authenticate(credentials.email, credentials.password)
    return token


@router.post("/logout")
async def logout(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Logout user

    Revokes the presented bearer token. Always succeeds.
    """
    await auth_service.logout(request.headers.get("Authorization"))
    request.state.auth = None
    return envelope(request, status.HTTP_200_OK, "Logged out successfully")


@router.get("/users/{email}")
async def check_email(
    email: str,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Check whether an email is already registered"""
    registered = await auth_service.is_email_registered(email)
    return envelope(
        request,
        status.HTTP_200_OK,
        "Email is registered" if registered else "Email is available",
        data=registered
    )
