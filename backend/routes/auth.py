# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from sqlalchemy import func
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import issue_token, get_current_user
from utils.audit import write_log
from models import users as models
from schemas import user as schemas
from database import get_db

router = APIRouter(prefix="/api/Auth", tags=["Auth"])


def _normalize_email(email: str) -> str:
    return email.strip().lower()


# Credential check used by login; returns the user or None
def authenticate(db: Session, email: str, password: str):
    db_user = db.query(models.User).filter(models.User.email == _normalize_email(email)).first()
    if not db_user or not verify_password(password, db_user.password_hash):
        return None
    return db_user


# Register a new user
@router.post("/register", response_model=schemas.MessageResponse)
def register(user: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    normalized_email = _normalize_email(user.email)

    # Check for existing user
    db_user = db.query(models.User).filter(func.lower(models.User.email) == normalized_email).first()
    if db_user:
        write_log(
            db,
            user_id=None,
            action="REGISTER",
            resource="auth",
            status="FAIL",
            request=request,
            meta={"email": normalized_email, "reason": "Email exists"},
        )
        raise HTTPException(status_code=400, detail="User already exists")

    # Every self-registered account is a regular customer
    new_user = models.User(
        username=user.username.strip(),
        email=normalized_email,
        password_hash=get_password_hash(user.password),
        role=models.ROLE_USER,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(
        db,
        user_id=new_user.id,
        action="REGISTER",
        resource="auth",
        status="SUCCESS",
        request=request,
        meta={"email": new_user.email},
    )
    return {"message": "User registered successfully"}


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    db_user = authenticate(db, payload.email, payload.password)

    if db_user is None:
        write_log(db, user_id=None, action="LOGIN", resource="auth",
                  status="FAIL", request=request, meta={"email": _normalize_email(payload.email)})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = issue_token(db_user)

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", request=request, meta={"email": db_user.email})

    return {"token": token, "token_type": "bearer"}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: models.User = Depends(get_current_user)):
    return current_user
