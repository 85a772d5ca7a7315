from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
import logging
import os

from db import Base, engine, get_db_session
from models.models_user import User
from models.schemas_user import UserLogin, UserOut, UserCreate, TokenResponse
from utils.crud_user import get_user_by_username, create_user
from utils.auth_utils import hash_password, verify_password, create_token
from utils.auth_deps import auth_user, central_admin
from allocation.logic.audit import log_action
from allocation.logic.constants import AUDIT_ACTION_USER_CREATE
from allocation.models import Student, EntranceResult, Vacancy, Setting, AuditLog  # noqa: F401 (register tables)
from allocation.routes import router as allocation_router

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logging.info("App starting with DATABASE_URL")

app = FastAPI(title="District Seat Allotment")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Base.metadata.create_all(bind=engine)

app.include_router(allocation_router)


@app.post("/auth/login", response_model=TokenResponse, tags=["auth"], summary="Login")
def login(payload: UserLogin, db_session=Depends(get_db_session)):
    db: Session
    with db_session as db:
        user = get_user_by_username(db, payload.username.lower())
        if not user or not verify_password(payload.password, user.password_hash):
            raise HTTPException(status_code=401, detail="Invalid credentials")
        if user.is_blocked:
            raise HTTPException(status_code=403, detail="User is blocked")
        return TokenResponse(access_token=create_token(str(user.id), user.role))


@app.get("/users/me", response_model=UserOut, tags=["users"], summary="Current user")
def me(current: UserOut = Depends(auth_user)):
    return current


@app.post("/api/users", response_model=UserOut, tags=["users"], summary="Create an admin account")
def create_admin_user(
    payload: UserCreate,
    request: Request,
    current: UserOut = Depends(central_admin),
    db_session=Depends(get_db_session)
):
    db: Session
    with db_session as db:
        if get_user_by_username(db, payload.username.lower()):
            raise HTTPException(status_code=400, detail="Username already exists")
        user = create_user(
            db,
            username=payload.username,
            role=payload.role,
            district=payload.district,
            email=payload.email,
            password_hash=hash_password(payload.password),
        )
        user.first_name = payload.first_name
        user.last_name = payload.last_name
        db.flush()
        log_action(
            db, current.id, AUDIT_ACTION_USER_CREATE, "users", user.id,
            {"username": user.username, "role": user.role},
            request.client.host if request.client else None,
            request.headers.get("user-agent"),
        )
        return UserOut.model_validate(user)


@app.get("/health", tags=["meta"], summary="Health check")
def health():
    return {"status": "ok"}
