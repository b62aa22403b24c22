"""Password hashing and the JWT bearer tokens that identify push subscribers."""

from datetime import datetime, timedelta, timezone
from hashlib import sha256

from jose import JWTError, jwt
from passlib.context import CryptContext

from kanban.config import get_settings
from kanban.domain.entities import User

ALGORITHM = "HS256"

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__rounds=310_000,
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def password_signature(hashed_password: str, is_active: bool) -> str:
    """Fingerprint carried by every token.

    It changes with the password hash or the active flag, which revokes the
    tokens issued before.
    """

    return sha256(f"{hashed_password}:{int(is_active)}".encode()).hexdigest()


def issue_access_token(user: User) -> str:
    """Return a token whose ``sub`` is the user's e-mail address."""

    return create_access_token(
        {
            "sub": user.email,
            "uid": user.id,
            "pwd_sig": password_signature(user.password, user.is_active),
        }
    )


def create_access_token(claims: dict, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(minutes=get_settings().access_token_expire_minutes)
    payload = {**claims, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(payload, get_settings().secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Return the claims of ``token``; raise ``ValueError`` if it is invalid or expired."""

    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def refresh_access_token(token: str) -> str:
    claims = decode_access_token(token)
    claims.pop("exp", None)
    return create_access_token(claims)
