# app/core/security.py
"""
Security module for authentication.
Handles password hashing and JWT creation/validation. Secrets and lifetimes
are passed in by the caller (see app.services.tokens), nothing is read from
the environment here.
"""
import uuid
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext

# Password hashing context
# Argon2 is a modern, secure password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for password hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Returns:
        True if password matches, False otherwise (including an empty or malformed hash)
    """
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False

def create_token(
    claims: dict,
    secret: str,
    expires_minutes: int,
    token_type: str,
    alg: str = "HS256",
) -> str:
    """
    Create a signed JWT.

    Token payload includes the given claims plus:
        - type: "access" or "refresh", checked on decode
        - jti: Random token id, so two tokens issued in the same second differ
        - iat: Issued at timestamp
        - exp: Expiration timestamp
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        **claims,
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + dt.timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, secret, algorithm=alg)

def decode_token(token: str, secret: str, token_type: str, alg: str = "HS256") -> dict:
    """
    Decode and validate a JWT.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid, malformed or of the wrong type
    """
    payload = jwt.decode(token, secret, algorithms=[alg])
    if payload.get("type") != token_type:
        raise jwt.InvalidTokenError(f"expected {token_type} token")
    return payload
