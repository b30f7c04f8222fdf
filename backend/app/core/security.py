from jose import jwt

from app.core.config import get_settings

settings = get_settings()


def decode_token(token: str) -> dict:
    """Verify a bearer token issued by the identity service and return its claims."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
