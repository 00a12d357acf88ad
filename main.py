import logging
import sys
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Path as PathParam, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import schemas
from config import Settings
from database import Base, make_engine, make_session_factory
from deps import Identity, get_db, get_hasher, get_identity, get_tokens
from errors import AuthError, ConflictError, NotFoundError, register_error_handlers
from models import User, Task, new_user, new_task
from security import PasswordHasher, TokenCodec

logger = logging.getLogger("tasks_api")

router = APIRouter()

# ids outside the 64-bit range the store can hold are rejected as invalid
TaskId = Annotated[int, PathParam(ge=-(2**63), le=2**63 - 1)]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s - %(message)s",
        stream=sys.stdout,
    )


# Status
@router.get("/")
def api_status():
    return {"status": "OK"}


# Register
@router.post("/users", response_model=schemas.UserOut)
def register(
    payload: schemas.UserCreate,
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
):
    existing = db.query(User).filter(User.email == payload.email).first()
    if existing:
        raise ConflictError("Email already in use")

    user = new_user(payload.name, payload.email, payload.password, hasher)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration for the same email
        db.rollback()
        raise ConflictError("Email already in use")
    db.refresh(user)

    logger.info("Registered user %s", user.id)
    return user


@router.delete("/users", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_account(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    user = db.get(User, identity.id)
    if user is not None:
        db.delete(user)  # owned tasks go with it
        db.commit()

    logger.info("Deleted user %s", identity.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Login
@router.post("/token", response_model=schemas.TokenOut)
def issue_token(
    payload: schemas.TokenRequest,
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
    tokens: TokenCodec = Depends(get_tokens),
):
    user = db.query(User).filter(User.email == payload.email).first()

    if user is None or not hasher.verify(payload.password, user.password):
        logger.info("Rejected token request")
        raise AuthError()

    token = tokens.issue({"id": user.id, "name": user.name, "email": user.email})
    return {"token": token}


@router.get("/tasks", response_model=List[schemas.TaskOut])
def list_tasks(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return db.query(Task).filter(Task.user_id == identity.id).order_by(Task.id).all()


@router.post("/tasks", response_model=schemas.TaskOut)
def create_task(
    payload: schemas.TaskCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    task = new_task(payload.title, identity.id)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@router.get("/tasks/{task_id}", response_model=schemas.TaskOut)
def get_task(task_id: TaskId, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == identity.id).first()

    # a task owned by someone else looks exactly like a missing one
    if not task:
        raise NotFoundError()
    return task


@router.put("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def update_task(
    task_id: TaskId,
    payload: schemas.TaskUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    db.query(Task).filter(Task.id == task_id, Task.user_id == identity.id).update(
        {Task.title: payload.title, Task.done: payload.done},
        synchronize_session=False,
    )
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_task(task_id: TaskId, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    db.query(Task).filter(Task.id == task_id, Task.user_id == identity.id).delete(
        synchronize_session=False
    )
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    engine = make_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.create_tables:
            Base.metadata.create_all(bind=engine)
        logger.info("Tasks API ready")
        yield
        engine.dispose()

    app = FastAPI(title="Tasks API", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.hasher = PasswordHasher(settings.bcrypt_rounds)
    app.state.tokens = TokenCodec(settings.secret_key, settings.algorithm)

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.debug("%s %s %s - %.3fs", request.method, request.url.path, response.status_code, elapsed)
        return response

    register_error_handlers(app)
    app.include_router(router)

    if Path(settings.static_dir).is_dir():
        app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    # each worker builds its own app; nothing is shared in memory
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        workers=settings.workers,
        ssl_keyfile=settings.ssl_keyfile if settings.use_tls else None,
        ssl_certfile=settings.ssl_certfile if settings.use_tls else None,
        log_level=settings.log_level.lower(),
    )
