from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from eventease.controller.user_controller import (
    get_user_data,
    register_user,
    request_password_reset,
    reset_password,
    sign_in,
    sign_out,
    update_user_profile,
)
from eventease.database import get_db
from eventease.deps import get_current_session
from eventease.errors import NotFound
from eventease.response_model import ResponseModel
from eventease.schema.user_schema import (
    PasswordForgot,
    PasswordReset,
    ProfileUpdate,
    UserLogin,
    UserRegister,
)
from eventease.session import SessionPrincipal

router = APIRouter()


def session_payload(principal: SessionPrincipal) -> dict:
    return {
        "token": principal.token,
        "user": {
            "uid": principal.uid,
            "email": principal.email,
            "display_name": principal.display_name,
            "role": principal.role,
            "photo_url": principal.photo_url,
        },
    }


# ----------------------- REGISTER -----------------------
@router.post("/register", response_description="Create an account")
async def register_account(user: UserRegister, db: Session = Depends(get_db)):
    principal = await register_user(db, user.email, user.password, user.display_name, user.role)
    return ResponseModel(session_payload(principal), "User registered successfully")


# ----------------------- LOGIN / LOGOUT -----------------------
@router.post("/login", response_description="Sign in")
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    principal = await sign_in(db, credentials.email, credentials.password)
    return ResponseModel(session_payload(principal), "Successfully logged in")


@router.post("/logout", response_description="Sign out")
async def logout(principal: SessionPrincipal = Depends(get_current_session), db: Session = Depends(get_db)):
    await sign_out(db, principal.token)
    return ResponseModel(None, "Signed out")


# ----------------------- PROFILE -----------------------
@router.get("/me", response_description="Profile of the signed-in user")
async def get_me(principal: SessionPrincipal = Depends(get_current_session), db: Session = Depends(get_db)):
    profile = await get_user_data(db, principal.uid)
    if profile is None:
        raise NotFound(f"User {principal.uid} not found")
    return ResponseModel(profile, "User retrieved successfully")


@router.put("/profile", response_description="Update profile")
async def update_profile(
    update_data: ProfileUpdate,
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    profile = await update_user_profile(db, principal.uid, update_data.model_dump(exclude_none=True))
    return ResponseModel(profile, "User updated successfully")


# ----------------------- FORGOT / RESET PASSWORD -----------------------
@router.post("/password/forgot", response_description="Send a password reset code")
async def forgot_password(body: PasswordForgot, db: Session = Depends(get_db)):
    await request_password_reset(db, body.email)
    return ResponseModel(
        {"email": body.email},
        "If this email is registered, a reset code has been sent.",
    )


@router.post("/password/reset", response_description="Reset password with a code")
async def handle_password_reset(body: PasswordReset, db: Session = Depends(get_db)):
    await reset_password(db, body.email, body.otp, body.new_password)
    return ResponseModel({"email": body.email}, "Password reset successfully. You can now log in.")


__all__ = ["router"]
