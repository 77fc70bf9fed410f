# PURPOSE: /auth/register, /auth/login, /auth/me

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ..auth import create_access_token, get_current_user, hash_password, verify_password
from ..config import settings
from ..models import TokenResponse, UserCreate, UserIdentity
from ..rate_limit import limiter
from ..store_db import UserRepository, get_db

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserIdentity, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_REGISTER)
def register_user(
    request: Request, response: Response, payload: UserCreate, db: Session = Depends(get_db)
):
    users = UserRepository(db)
    # Check unique email
    if users.get_by_email(payload.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    user = users.add(
        email=payload.email,
        username=payload.username,
        password_hash=hash_password(payload.password),
    )
    return UserIdentity.model_validate(user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request,
    response: Response,
    form: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    # OAuth2PasswordRequestForm fields: username (carries the email), password
    user = UserRepository(db).get_by_email(form.username)
    if not user or not verify_password(form.password, user.password_hash):
        raise HTTPException(
            status_code=401,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserIdentity)
def me(user: UserIdentity = Depends(get_current_user)):
    return user
