# backend/routes/auth.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas import user as schemas
from utils.audit import write_log, client_ip
from utils.auth_errors import (
    INVALID_CREDENTIALS, TOO_MANY_REQUESTS, GENERIC_AUTH_ERROR, auth_error_message, login_throttle,
)
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, require_admin

router = APIRouter(tags=["Auth"])
logger = logging.getLogger(__name__)


# Authenticate an admin and issue a JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()

    if login_throttle.is_blocked(email):
        write_log(db, user_id=None, action="LOGIN", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": email, "reason": TOO_MANY_REQUESTS})
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                            detail=auth_error_message(TOO_MANY_REQUESTS))

    try:
        db_user = db.query(User).filter(func.lower(User.email) == email).first()
        valid = bool(db_user) and verify_password(payload.password, db_user.password_hash)
    except Exception:
        logger.exception("Sign-in failed for %s", email)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=GENERIC_AUTH_ERROR)

    # Validate credentials and log failure on error
    if not valid:
        login_throttle.record_failure(email)
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail=auth_error_message(INVALID_CREDENTIALS))

    login_throttle.reset(email)
    access_token = create_access_token(data={"sub": db_user.email, "role": db_user.role})

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})

    return {"access_token": access_token, "token_type": "bearer"}


# Retrieve current authenticated admin details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(require_admin)):
    return current_user


# Update the admin display name
@router.patch("/me", response_model=schemas.UserResponse)
def update_profile(
    payload: schemas.ProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    current_user.display_name = payload.display_name.strip()
    db.commit()
    db.refresh(current_user)
    write_log(db, user_id=current_user.id, action="PROFILE_UPDATE", resource="auth",
              ip=client_ip(request), meta={"display_name": current_user.display_name})
    return current_user


# Change password after re-checking the current one
@router.post("/me/password")
def change_password(
    payload: schemas.PasswordChange,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    if payload.new_password != payload.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")
    if not verify_password(payload.current_password, current_user.password_hash):
        write_log(db, user_id=current_user.id, action="PASSWORD_CHANGE", resource="auth",
                  status="FAIL", ip=client_ip(request))
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    current_user.password_hash = get_password_hash(payload.new_password)
    db.commit()
    write_log(db, user_id=current_user.id, action="PASSWORD_CHANGE", resource="auth",
              ip=client_ip(request))
    return {"message": "Password updated"}
