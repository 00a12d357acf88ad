"""
Password hashing and bearer token signing.

Both helpers are built from ``Settings`` at startup and handed to the app;
nothing here reads the environment.
"""

from typing import Any, Dict

from jose import jwt, JWTError
from passlib.context import CryptContext


class InvalidToken(Exception):
    """The token is malformed, badly signed, or carries no usable claims."""


class PasswordHasher:
    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        """Salted bcrypt hash; a fresh salt is drawn on every call."""
        return self._context.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        try:
            return self._context.verify(password, hashed_password)
        except (ValueError, TypeError):
            # unrecognised or corrupt stored hash
            return False


class TokenCodec:
    """Signs and checks tokens carrying ``{id, name, email}``.

    No ``exp`` claim is written, so a token stays valid until the secret
    changes.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self._secret_key = secret_key
        self._algorithm = algorithm

    def issue(self, claims: Dict[str, Any]) -> str:
        return jwt.encode(dict(claims), self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            raise InvalidToken(str(exc)) from exc

        user_id = claims.get("id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidToken("token carries no user id")
        return claims
