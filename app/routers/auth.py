from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.database import get_db
from app.schemas.auth import LoginRequest, RefreshTokenRequest, RegisterRequest, TokenResponse, UserResponse
from app.schemas.common import SuccessResponse
from app.services.auth_service import AuthService
from app.services.presence_service import PresenceService
from app.services.user_service import UserService
from app.utils.errors import InvalidCredentialsError, UserAlreadyExistsError, UserNotFoundError, Unauthorized
from app.dependencies.auth import get_current_user
from app.dependencies.rate_limit import rate_limit
from app.utils.helpers import get_client_ip

router = APIRouter(prefix="/api", tags=["authentication"])


def _set_auth_cookie(response: Response, tokens: dict) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=tokens["access_token"],
        max_age=tokens["expires_in"],
        httponly=True,
        samesite="lax",
        secure=settings.AUTH_COOKIE_SECURE,
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    request: RegisterRequest,
    http_request: Request,
    response: Response,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit),
):
    """
    Create an account and log it in
    - Validate inputs
    - Create user
    - Return JWT tokens and set the login cookie
    """
    try:
        result = AuthService.register(
            db=db,
            username=request.username,
            password=request.password,
            ip_address=get_client_ip(http_request),
            user_agent=http_request.headers.get("user-agent", ""),
        )
    except UserAlreadyExistsError:
        raise
    except (ValueError, SQLAlchemyError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    _set_auth_cookie(response, result)
    return result

@router.post("/login", response_model=TokenResponse, status_code=200)
async def login(
    request: LoginRequest,
    http_request: Request,
    response: Response,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit),
):
    """
    Username/password login
    - Verify credentials
    - Return JWT tokens and set the login cookie
    """
    try:
        result = AuthService.login(
            db=db,
            username=request.username,
            password=request.password,
            ip_address=get_client_ip(http_request),
            user_agent=http_request.headers.get("user-agent", ""),
        )
    except InvalidCredentialsError:
        raise
    except (ValueError, SQLAlchemyError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    _set_auth_cookie(response, result)
    return result


@router.post("/refresh", response_model=TokenResponse, status_code=200)
async def refresh_tokens(
    request: RefreshTokenRequest,
    http_request: Request,
    response: Response,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit),
):
    """Exchange a valid refresh token for a new access + refresh token pair (rotation)."""
    try:
        result = AuthService.refresh_tokens(
            db=db,
            refresh_token=request.refresh_token,
            ip_address=get_client_ip(http_request),
            user_agent=http_request.headers.get("user-agent", ""),
        )
    except (InvalidCredentialsError, UserNotFoundError) as e:
        raise HTTPException(status_code=401, detail=e.detail)
    _set_auth_cookie(response, result)
    return result

@router.post("/logout", response_model=SuccessResponse, status_code=200)
async def logout(
    response: Response,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Logout user (revoke current session)"""
    AuthService.logout(db, user_id=current_user["user_id"], token_jti=current_user["jti"])
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/user", response_model=UserResponse)
async def get_user(
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        user = UserService.get_user(db, current_user["user_id"])
    except UserNotFoundError:
        raise Unauthorized("User not found")
    profile = UserResponse.model_validate(user)
    profile.active_session_id = await PresenceService.current_session(user.id)
    return profile
