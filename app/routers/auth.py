import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.db import get_db
from app.models.user import User
from app.schemas.user import Token, UserCreate, UserResponse
from app.utils.auth import create_access_token, get_password_hash, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
def register(user: UserCreate, db: Session = Depends(get_db)):
    """
    Create an account.

    - **username**: unique display name.
    - **email**: unique e-mail address.
    - **password**: at least six characters.
    """
    existing = db.query(User).filter(
        or_(User.username == user.username, User.email == user.email)
    ).first()
    if existing:
        logger.error(f"Registration rejected, username or email taken: {user.username}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username or email already registered")

    db_user = User(
        username=user.username,
        email=user.email,
        hashed_password=get_password_hash(user.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Registered user {db_user.id}")
    return db_user


@router.post("/login", response_model=Token, summary="Obtain an access token")
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == form_data.username).first()
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.error(f"Failed login for {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"access_token": create_access_token({"sub": str(user.id)}), "token_type": "bearer"}
