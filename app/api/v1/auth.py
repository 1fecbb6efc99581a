"""Session endpoints (register, login, refresh, logout, password reset) and auth dependencies."""

from typing import Annotated

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Cookie,
    Depends,
    HTTPException,
    Request,
    Response,
    status,
)
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import api_limit, auth_limit
from app.core.security import AuthError, verify_access
from app.schemas.auth import (
    CurrentUser,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UpdateEmailRequest,
)
from app.services import credential_store, role_policy, session_manager
from app.services.errors import CredentialError, Unauthenticated
from app.services.session_manager import SessionResult

router = APIRouter()
security = HTTPBearer(auto_error=False)

REFRESH_COOKIE_PATH = f"{settings.API_V1_PREFIX}/auth"
REFRESH_COOKIE_MAX_AGE = settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60

RefreshCookie = Annotated[str | None, Cookie(alias=settings.REFRESH_COOKIE_NAME)]


def to_http_exception(e: CredentialError) -> HTTPException:
    """Translate a service error into the HTTP response the caller sees."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(e, Unauthenticated) else None
    return HTTPException(status_code=e.status_code, detail=e.message, headers=headers)


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=REFRESH_COOKIE_MAX_AGE,
        path=REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        path=REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def _token_response(result: SessionResult, response: Response) -> TokenResponse:
    _set_refresh_cookie(response, result.tokens.refresh_token)
    return TokenResponse(
        access_token=result.tokens.access_token,
        token_type="bearer",
        username=result.username,
        role=result.role,
        migration_required=result.migration_required,
    )


# --- Dependencies -----------------------------------------------------------------


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer access token.

    401 when no token is presented, 403 when it is invalid or expired. The role is the
    one embedded in the token; privileged dependencies re-read it from the store.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        claims = verify_access(credentials.credentials)
    except AuthError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )
    return CurrentUser(username=claims.username, role=claims.role)


def _current_role(db: Session, current_user: CurrentUser) -> str | None:
    return credential_store.get_role(db, current_user.username)


def require_elevated(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: admin or moderator, judged by the role currently stored for the account."""
    role = _current_role(db, current_user)
    if not role_policy.is_elevated(role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return CurrentUser(username=current_user.username, role=role)


def require_invite_capable(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: admin, moderator or staff, judged by the role currently stored for the account."""
    role = _current_role(db, current_user)
    if not role_policy.is_invite_capable(role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    return CurrentUser(username=current_user.username, role=role)


# --- Routes -----------------------------------------------------------------------


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
@auth_limit
def register(
    request: Request,
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """
    Create an account. The first account of an empty store becomes admin and needs no
    invite; every other registration must redeem an invite code.
    """
    try:
        session_manager.register(
            db,
            username=body.username,
            email=str(body.email),
            password=body.password,
            invite_code=body.invite_code,
        )
    except CredentialError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="Account created.")


@router.post("/login", response_model=TokenResponse)
@auth_limit
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """
    Authenticate with username (or email) and password.

    Returns an access token; include it as: Authorization: Bearer <access_token>.
    The refresh token is set as an HttpOnly, SameSite=Strict cookie.
    """
    try:
        result = session_manager.login(db, body.username, body.password)
    except CredentialError as e:
        raise to_http_exception(e) from e
    return _token_response(result, response)


@router.post("/refresh", response_model=TokenResponse)
@auth_limit
def refresh(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    refresh_token: RefreshCookie = None,
) -> TokenResponse:
    """Exchange the refresh cookie for a new access token; the cookie is rotated."""
    try:
        result = session_manager.refresh(db, refresh_token)
    except CredentialError as e:
        raise to_http_exception(e) from e
    return _token_response(result, response)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
@api_limit
def logout(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    refresh_token: RefreshCookie = None,
) -> Response:
    """End the session named by the refresh cookie. Always 204, with or without a cookie."""
    session_manager.logout(db, refresh_token)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    _clear_refresh_cookie(response)
    return response


@router.post("/forgot-password", response_model=MessageResponse)
@auth_limit
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Request a reset link. The reply is identical whether or not the email is registered."""
    message = session_manager.forgot_password(db, str(body.email), background_tasks.add_task)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
@auth_limit
def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Set a new password using the token from the reset link (single use)."""
    try:
        session_manager.reset_password(db, body.token, body.password)
    except CredentialError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="Password has been reset.")


@router.post("/update-email", response_model=MessageResponse)
@api_limit
def update_email(
    request: Request,
    body: UpdateEmailRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Attach or change the email of the signed-in account (accounts created before emails existed)."""
    try:
        session_manager.update_email(db, current_user.username, str(body.email))
    except CredentialError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="Email updated.")
