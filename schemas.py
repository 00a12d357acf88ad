from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime


class _Input(BaseModel):
    # surrounding whitespace is trimmed before length checks
    model_config = ConfigDict(str_strip_whitespace=True)


class UserCreate(_Input):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=12)


class TokenRequest(_Input):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=12)


class TaskCreate(_Input):
    title: str = Field(..., min_length=1, max_length=255)


class TaskUpdate(_Input):
    title: str = Field(..., min_length=1, max_length=255)
    done: bool


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    done: bool
    created_at: datetime
    updated_at: datetime


class TokenOut(BaseModel):
    token: str
