from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from errors import AuthError
from models import User
from security import InvalidToken, PasswordHasher, TokenCodec

_SCHEMES = ("bearer", "jwt")


@dataclass(frozen=True)
class Identity:
    id: int
    email: str


# Database dependency
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_tokens(request: Request) -> TokenCodec:
    return request.app.state.tokens


def authenticate(authorization: Optional[str], db: Session, tokens: TokenCodec) -> Identity:
    """
    Resolve ``Authorization: Bearer <token>`` to the identity it names.

    Raises ``AuthError`` when the header is missing or malformed, the token
    does not verify, or the user it names no longer exists.
    """
    if not authorization:
        raise AuthError()
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() not in _SCHEMES:
        raise AuthError()

    try:
        claims = tokens.verify(parts[1])
    except InvalidToken:
        raise AuthError()

    user = db.get(User, claims["id"])
    if user is None or user.email != claims.get("email"):
        raise AuthError()
    return Identity(id=user.id, email=user.email)


def get_identity(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    tokens: TokenCodec = Depends(get_tokens),
) -> Identity:
    return authenticate(authorization, db, tokens)
