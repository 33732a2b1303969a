"""
Identity providers.

The API never verifies passwords or tokens on its own: it asks an
IdentityProvider to turn credentials into an opaque owner id. Supabase Auth
is the production provider; the local provider keeps profiles in the app
database and is used for development and tests.
"""
from __future__ import annotations

import logging
import re
import secrets
import uuid
from typing import Any, Protocol

import httpx
from sqlalchemy.engine import Engine
from sqlmodel import Session, select
from werkzeug.security import check_password_hash, generate_password_hash

from config import Settings
from durations import to_storage, utcnow
from errors import AuthenticationError, ConflictError, NotFoundError, UnavailableError, ValidationError
from models import AuthToken, Profile, dump

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[a-zA-Z\d@$!%*?&]{8,}$")

PUBLIC_PROFILE_FIELDS = ("id", "email", "nama_lengkap", "alamat", "username", "created_at")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def is_valid_password(password: str) -> bool:
    return bool(PASSWORD_RE.match(password or ""))


def validate_registration(
    *, email: str, nama_lengkap: str, username: str, password: str
) -> None:
    if not email or not nama_lengkap or not username or not password:
        raise ValidationError("All fields are required: email, nama_lengkap, username, password")
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    if not is_valid_password(password):
        raise ValidationError(
            "Password must be at least 8 characters with at least one uppercase, "
            "one lowercase, and one number"
        )


class IdentityProvider(Protocol):
    def register(
        self, *, email: str, nama_lengkap: str, alamat: str | None, username: str, password: str
    ) -> dict[str, Any]: ...

    def login(self, identifier: str, password: str) -> tuple[dict[str, Any], str]: ...

    def resolve(self, token: str) -> str: ...

    def logout(self, token: str) -> None: ...

    def get_profile(self, owner: str) -> dict[str, Any]: ...

    def update_profile(
        self, owner: str, *, nama_lengkap: str | None, alamat: str | None, username: str | None
    ) -> dict[str, Any]: ...


class LocalIdentityProvider:
    """Profiles and opaque bearer tokens stored next to the task data."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def register(self, *, email, nama_lengkap, alamat, username, password):
        validate_registration(
            email=email, nama_lengkap=nama_lengkap, username=username, password=password
        )
        with Session(self._engine) as db:
            if db.exec(select(Profile).where(Profile.email == email)).first():
                raise ConflictError("Email already registered")
            if db.exec(select(Profile).where(Profile.username == username)).first():
                raise ConflictError("Username already taken")
            profile = Profile(
                id=str(uuid.uuid4()),
                email=email,
                username=username,
                nama_lengkap=nama_lengkap,
                alamat=alamat or None,
                password_hash=generate_password_hash(password),
            )
            db.add(profile)
            db.commit()
            db.refresh(profile)
            logger.info("Registered local profile id=%s", profile.id)
            return _public(dump(profile))

    def login(self, identifier, password):
        if not identifier or not password:
            raise ValidationError("Email/username and password are required")
        column = Profile.email if is_valid_email(identifier) else Profile.username
        with Session(self._engine) as db:
            profile = db.exec(select(Profile).where(column == identifier)).first()
            if profile is None or not check_password_hash(profile.password_hash, password):
                raise AuthenticationError("Invalid credentials")
            # Commit expires profile; render it first.
            user = _public(dump(profile))
            token = secrets.token_urlsafe(32)
            db.add(AuthToken(token=token, profile_id=profile.id))
            db.commit()
            return user, token

    def resolve(self, token):
        with Session(self._engine) as db:
            row = db.get(AuthToken, token)
            if row is None:
                raise AuthenticationError("Unauthorized: Invalid token")
            return row.profile_id

    def logout(self, token):
        with Session(self._engine) as db:
            row = db.get(AuthToken, token)
            if row is not None:
                db.delete(row)
                db.commit()

    def get_profile(self, owner):
        with Session(self._engine) as db:
            profile = db.get(Profile, owner)
            if profile is None:
                raise NotFoundError("User not found")
            return _public(dump(profile))

    def update_profile(self, owner, *, nama_lengkap, alamat, username):
        with Session(self._engine) as db:
            profile = db.get(Profile, owner)
            if profile is None:
                raise NotFoundError("User not found")
            if username:
                taken = db.exec(
                    select(Profile).where(Profile.username == username, Profile.id != owner)
                ).first()
                if taken:
                    raise ConflictError("Username already taken")
                profile.username = username
            if nama_lengkap:
                profile.nama_lengkap = nama_lengkap
            if alamat:
                profile.alamat = alamat
            profile.updated_at = to_storage(utcnow())
            db.add(profile)
            db.commit()
            db.refresh(profile)
            return _public(dump(profile))


class SupabaseIdentityProvider:
    """Supabase Auth for credentials, the `profiles` table for user details."""

    def __init__(self, url: str, key: str) -> None:
        from supabase import create_client

        self._client = create_client(url, key)
        logger.info("Supabase identity provider ready url=%s", url)

    def _profiles(self):
        return self._client.table("profiles")

    def _first(self, query) -> dict[str, Any] | None:
        try:
            rows = query.limit(1).execute().data
        except httpx.TransportError as exc:
            raise UnavailableError("Identity service unavailable") from exc
        return rows[0] if rows else None

    def register(self, *, email, nama_lengkap, alamat, username, password):
        validate_registration(
            email=email, nama_lengkap=nama_lengkap, username=username, password=password
        )
        if self._first(self._profiles().select("id").eq("email", email)):
            raise ConflictError("Email already registered")
        if self._first(self._profiles().select("id").eq("username", username)):
            raise ConflictError("Username already taken")

        try:
            created = self._client.auth.admin.create_user(
                {"email": email, "password": password, "email_confirm": True}
            )
        except httpx.TransportError as exc:
            raise UnavailableError("Identity service unavailable") from exc
        except Exception as exc:
            raise ValidationError(f"Auth error: {exc}") from exc
        user_id = created.user.id

        profile = {
            "id": user_id,
            "email": email,
            "nama_lengkap": nama_lengkap,
            "alamat": alamat or None,
            "username": username,
        }
        try:
            self._profiles().insert(profile).execute()
        except Exception as exc:
            logger.warning("Profile insert failed for %s, removing auth user", user_id)
            self._client.auth.admin.delete_user(user_id)
            raise ValidationError(f"Profile creation error: {exc}") from exc
        return {**profile, "created_at": utcnow().isoformat()}

    def login(self, identifier, password):
        if not identifier or not password:
            raise ValidationError("Email/username and password are required")
        email = identifier
        if not is_valid_email(identifier):
            row = self._first(self._profiles().select("email").eq("username", identifier))
            if row is None:
                raise AuthenticationError("Invalid credentials")
            email = row["email"]

        try:
            resp = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except httpx.TransportError as exc:
            raise UnavailableError("Identity service unavailable") from exc
        except Exception as exc:
            raise AuthenticationError("Invalid credentials") from exc

        profile = self._first(self._profiles().select("*").eq("id", resp.user.id))
        if profile is None:
            raise NotFoundError("Profile retrieval error")
        user = _public({**profile, "id": resp.user.id, "email": resp.user.email})
        return user, resp.session.access_token

    def resolve(self, token):
        try:
            resp = self._client.auth.get_user(token)
        except httpx.TransportError as exc:
            raise UnavailableError("Identity service unavailable") from exc
        except Exception as exc:
            raise AuthenticationError("Unauthorized: Token verification failed") from exc
        if resp is None or resp.user is None:
            raise AuthenticationError("Unauthorized: Invalid token")
        return resp.user.id

    def logout(self, token):
        try:
            self._client.auth.admin.sign_out(token)
        except httpx.TransportError as exc:
            raise UnavailableError("Identity service unavailable") from exc

    def get_profile(self, owner):
        profile = self._first(self._profiles().select("*").eq("id", owner))
        if profile is None:
            raise NotFoundError("User not found")
        return profile

    def update_profile(self, owner, *, nama_lengkap, alamat, username):
        if username:
            taken = self._first(self._profiles().select("id").eq("username", username).neq("id", owner))
            if taken:
                raise ConflictError("Username already taken")
        changes = {k: v for k, v in
                   {"nama_lengkap": nama_lengkap, "alamat": alamat, "username": username}.items() if v}
        changes["updated_at"] = utcnow().isoformat()
        try:
            rows = self._profiles().update(changes).eq("id", owner).execute().data
        except httpx.TransportError as exc:
            raise UnavailableError("Identity service unavailable") from exc
        if not rows:
            raise NotFoundError("User not found")
        return rows[0]


def _public(profile: dict[str, Any]) -> dict[str, Any]:
    return {k: profile.get(k) for k in PUBLIC_PROFILE_FIELDS}


def build_identity_provider(settings: Settings, engine: Engine) -> IdentityProvider:
    if settings.auth_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise RuntimeError(
                "Supabase auth selected but SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY are not set"
            )
        return SupabaseIdentityProvider(settings.supabase_url, settings.supabase_key)
    if settings.auth_backend != "local":
        raise RuntimeError(f"Unknown auth backend: {settings.auth_backend!r}")
    return LocalIdentityProvider(engine)
