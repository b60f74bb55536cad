"""Account and session router.

Sign-up, login, logout, password reset, and profile edits exist only for the
in-memory backend. With an external identity provider those flows live in
the provider; ``/auth/me`` works with every backend.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Response, status

from trashmap.dependencies import AuthBackendDep, CurrentUserRequired
from trashmap.exceptions import BaseAPIException, NotFoundError
from trashmap.schemas.auth import (
    CredentialsRequest,
    ProfileUpdateRequest,
    ResetPasswordRequest,
    SessionResponse,
    SignupRequest,
    UserResponse,
)
from trashmap.services.auth_service import (
    AuthenticatedUser,
    InMemoryAuthBackend,
    extract_bearer_token,
)
from trashmap.utils.logger import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_account_backend(auth_backend: AuthBackendDep) -> InMemoryAuthBackend:
    """Return the backend if it manages accounts itself."""
    if not isinstance(auth_backend, InMemoryAuthBackend):
        raise BaseAPIException(
            "Account management is handled by the identity provider",
            error_code="NOT_SUPPORTED",
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
        )
    return auth_backend


AccountBackendDep = Annotated[InMemoryAuthBackend, Depends(get_account_backend)]


def _deliver_temporary_password(email: str, temporary: str) -> None:
    # The in-memory backend has no mailer; the operator reads the server log
    log.warning("temporary password issued", email=email, temporary_password=temporary)


def _user_response(user: AuthenticatedUser) -> UserResponse:
    return UserResponse(
        uid=user.uid,
        email=user.email,
        display_name=user.display_name,
        role=user.role,
        is_admin=user.is_admin,
    )


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def signup(request: SignupRequest, backend: AccountBackendDep) -> SessionResponse:
    """Create an account and start a session."""
    user, token = await backend.signup(request.email, request.password, request.display_name)
    return SessionResponse(user=_user_response(user), token=token)


@router.post("/login", response_model=SessionResponse)
async def login(request: CredentialsRequest, backend: AccountBackendDep) -> SessionResponse:
    """Start a session with email and password."""
    user, token = await backend.login(request.email, request.password)
    return SessionResponse(user=_user_response(user), token=token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    backend: AccountBackendDep,
    authorization: Annotated[str | None, Header(alias="Authorization")] = None,
) -> Response:
    """End the current session."""
    await backend.logout(extract_bearer_token(authorization))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/reset-password", status_code=status.HTTP_202_ACCEPTED)
async def reset_password(request: ResetPasswordRequest, backend: AccountBackendDep) -> Response:
    """
    Replace the password with a temporary one, delivered out of band.

    The response is the same whether or not the email has an account and
    never carries the new password.
    """
    try:
        temporary = await backend.reset_password(request.email)
    except NotFoundError:
        log.info("password reset for unknown email ignored")
    else:
        _deliver_temporary_password(request.email, temporary)
    return Response(status_code=status.HTTP_202_ACCEPTED)


@router.patch("/profile", response_model=UserResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    current_user: CurrentUserRequired,
    backend: AccountBackendDep,
) -> UserResponse:
    """Change the signed-in user's display name."""
    user = await backend.update_profile(current_user.uid, request.display_name)
    return _user_response(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUserRequired) -> UserResponse:
    """Return the signed-in user."""
    return _user_response(current_user)
