"""Authentication backends.

Two interchangeable backends sit behind ``BaseAuthBackend``:

- ``ClerkAuthBackend`` verifies Clerk-issued JWTs (production).
- ``InMemoryAuthBackend`` keeps its own user table in the instance
  (tests and local development).

Admin access is an explicit ``role`` on the user, never inferred from the
shape of an email address. The in-memory backend grants it only to emails
on a configured allow-list.
"""

import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Iterable, Optional

import bcrypt
import jwt
from jwt import PyJWKClient

from trashmap.exceptions import (
    EmailAlreadyInUseError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    NotFoundError,
)
from trashmap.utils.logger import get_logger

log = get_logger(__name__)


class UserRole(StrEnum):
    CITIZEN = "citizen"
    ADMIN = "admin"


@dataclass(frozen=True)
class AuthenticatedUser:
    """The caller behind a verified token."""

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: UserRole = UserRole.CITIZEN

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def extract_bearer_token(authorization_header: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization_header:
        raise MissingTokenError()

    parts = authorization_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise InvalidTokenError("Invalid authorization header format")
    return parts[1]


def _parse_role(value: object) -> UserRole:
    try:
        return UserRole(value)
    except ValueError:
        return UserRole.CITIZEN


class BaseAuthBackend(ABC):
    """Abstract base class for authentication backends."""

    @abstractmethod
    async def verify_token(self, authorization_header: Optional[str]) -> AuthenticatedUser:
        """
        Resolve an Authorization header to a user.

        Raises:
            MissingTokenError: If no token is provided
            InvalidTokenError: If the token is invalid or expired
        """
        pass


class ClerkAuthBackend(BaseAuthBackend):
    """Verifies Clerk JWTs using JWKS."""

    # Clerk JWKS URL pattern
    JWKS_URL_TEMPLATE = "https://{clerk_domain}/.well-known/jwks.json"

    def __init__(self, allowed_domain: str) -> None:
        self._allowed_domain = allowed_domain
        self._jwks_client: Optional[PyJWKClient] = None

    def _get_jwks_client(self) -> PyJWKClient:
        if self._jwks_client is None:
            jwks_url = self.JWKS_URL_TEMPLATE.format(clerk_domain=self._allowed_domain)
            self._jwks_client = PyJWKClient(jwks_url)
        return self._jwks_client

    async def verify_token(self, authorization_header: Optional[str]) -> AuthenticatedUser:
        token = extract_bearer_token(authorization_header)

        try:
            # Read the issuer before verifying so untrusted issuers are rejected early
            unverified = jwt.decode(token, options={"verify_signature": False})
            issuer = unverified.get("iss", "")

            if not issuer or not issuer.startswith("https://"):
                raise InvalidTokenError("Invalid token issuer")
            if issuer.replace("https://", "") != self._allowed_domain:
                raise InvalidTokenError("Token issuer not trusted")

            signing_key = self._get_jwks_client().get_signing_key_from_jwt(token)
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                issuer=issuer,
                options={
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_nbf": True,
                },
            )

            uid = payload.get("sub")
            if not uid:
                raise InvalidTokenError("Token missing user identifier")

            metadata = payload.get("public_metadata") or {}
            role = _parse_role(payload.get("role") or metadata.get("role"))
            name_parts = [payload.get("first_name"), payload.get("last_name")]
            display_name = " ".join(p for p in name_parts if p) or None

            log.debug("token verified", uid=uid, role=role.value)
            return AuthenticatedUser(
                uid=uid,
                email=payload.get("email"),
                display_name=display_name,
                role=role,
            )

        except jwt.ExpiredSignatureError:
            log.warning("token expired")
            raise InvalidTokenError("Token has expired")
        except InvalidTokenError:
            raise
        except jwt.InvalidTokenError as e:
            log.warning("token invalid", error=str(e))
            raise InvalidTokenError(f"Token validation failed: {str(e)}")
        except Exception as e:
            log.error("token verification failed", error=str(e), error_type=type(e).__name__)
            raise InvalidTokenError("Token verification failed")


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash a password using bcrypt with salt.

    Args:
        password: The plaintext password to hash
        rounds: bcrypt cost factor

    Returns:
        The bcrypt hash string (includes salt)
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@dataclass
class _Account:
    password_hash: str
    user: AuthenticatedUser


class InMemoryAuthBackend(BaseAuthBackend):
    """
    Email/password accounts held in this instance.

    Passwords are stored as bcrypt hashes; sessions are opaque bearer tokens.
    Emails listed in ``admin_emails`` are given the admin role at signup.
    """

    def __init__(self, admin_emails: Iterable[str] = (), bcrypt_rounds: int = 12) -> None:
        self._accounts: dict[str, _Account] = {}
        self._sessions: dict[str, str] = {}  # token -> email
        self._admin_emails = frozenset(self._normalize_email(e) for e in admin_emails)
        self._bcrypt_rounds = bcrypt_rounds

    @staticmethod
    def _normalize_email(email: str) -> str:
        return email.strip().lower()

    def _account(self, email: str) -> _Account:
        account = self._accounts.get(self._normalize_email(email))
        if account is None:
            raise NotFoundError("User", email)
        return account

    def _open_session(self, email: str) -> str:
        token = secrets.token_urlsafe(32)
        self._sessions[token] = email
        return token

    async def signup(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        role: UserRole = UserRole.CITIZEN,
    ) -> tuple[AuthenticatedUser, str]:
        """Create an account and sign it in. Returns the user and a session token."""
        key = self._normalize_email(email)
        if key in self._accounts:
            raise EmailAlreadyInUseError(email)

        if key in self._admin_emails:
            role = UserRole.ADMIN
        user = AuthenticatedUser(
            uid=secrets.token_hex(12), email=key, display_name=display_name, role=role
        )
        self._accounts[key] = _Account(
            password_hash=hash_password(password, self._bcrypt_rounds), user=user
        )
        log.info("user signed up", uid=user.uid, role=role.value)
        return user, self._open_session(key)

    async def login(self, email: str, password: str) -> tuple[AuthenticatedUser, str]:
        """Check credentials and open a session."""
        account = self._account(email)
        if not verify_password(password, account.password_hash):
            log.warning("login rejected", uid=account.user.uid)
            raise InvalidCredentialsError()
        return account.user, self._open_session(self._normalize_email(email))

    async def logout(self, token: str) -> None:
        self._sessions.pop(token, None)

    async def reset_password(self, email: str) -> str:
        """
        Replace the password with a random temporary one.

        Returns the temporary password so the caller can deliver it out of
        band. It must never be handed back to the requester.
        """
        account = self._account(email)
        temporary = secrets.token_urlsafe(12)
        account.password_hash = hash_password(temporary, self._bcrypt_rounds)
        # Existing sessions for this account are revoked
        key = self._normalize_email(email)
        self._sessions = {t: e for t, e in self._sessions.items() if e != key}
        log.info("password reset", uid=account.user.uid)
        return temporary

    async def update_profile(self, uid: str, display_name: str) -> AuthenticatedUser:
        for account in self._accounts.values():
            if account.user.uid == uid:
                account.user = replace(account.user, display_name=display_name)
                return account.user
        raise NotFoundError("User", uid)

    async def set_role(self, email: str, role: UserRole) -> AuthenticatedUser:
        account = self._account(email)
        account.user = replace(account.user, role=role)
        log.info("user role changed", uid=account.user.uid, role=role.value)
        return account.user

    async def verify_token(self, authorization_header: Optional[str]) -> AuthenticatedUser:
        token = extract_bearer_token(authorization_header)
        email = self._sessions.get(token)
        if email is None or email not in self._accounts:
            raise InvalidTokenError("Unknown or expired session")
        return self._accounts[email].user
