from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from database import Base


def _now():
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Stores UTC and always reads back an aware datetime, sqlite included."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class User(Base):
    __tablename__ = "users"
    # ids are never reused, so a deleted user's token cannot name a newer account
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(100), nullable=False)  # bcrypt hash, never plaintext
    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now, nullable=False)

    tasks = relationship("Task", back_populates="owner", cascade="all, delete-orphan")


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    done = Column(Boolean, default=False, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now, nullable=False)

    owner = relationship("User", back_populates="tasks")


def new_user(name: str, email: str, password: str, hasher) -> User:
    """Build a User whose password is already hashed; the caller persists it."""
    return User(name=name, email=email, password=hasher.hash(password))


def new_task(title: str, owner_id: int) -> Task:
    return Task(title=title, done=False, user_id=owner_id)
