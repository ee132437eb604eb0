import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from eventease import constant_file
from eventease.controller.otp_handler import generate_otp, send_email
from eventease.cryptography import encrypt_password, verify_password
from eventease.database import backend_errors, server_timestamp
from eventease.errors import AuthRequired, NotFound, ValidationError
from eventease.models.auth_session_model import AuthSession
from eventease.models.otp_records_model import OTPRecord
from eventease.models.user_model import User, USER_ROLES
from eventease.schema.user_schema import serialize_user
from eventease.session import SessionPrincipal, profile_cache

logger = logging.getLogger(__name__)


def principal_from_profile(profile: dict, token: str) -> SessionPrincipal:
    return SessionPrincipal(
        uid=profile["uid"],
        email=profile["email"],
        display_name=profile["display_name"],
        role=profile["role"],
        photo_url=profile.get("photo_url"),
        token=token,
    )


async def open_session(db: Session, user: User) -> SessionPrincipal:
    token = secrets.token_urlsafe(32)
    with backend_errors(db, "opening session"):
        db.add(AuthSession(token=token, uid=user.uid, created_at=server_timestamp()))
        db.commit()
    profile = serialize_user(user)
    profile_cache.put(user.uid, profile)
    return principal_from_profile(profile, token)


async def retrieve_user_by_email(db: Session, email: str) -> Optional[User]:
    with backend_errors(db, "getting user"):
        return db.query(User).filter(User.email == email.strip().lower()).first()


# ------------------ Register User ------------------
async def register_user(db: Session, email: str, password: str, display_name: str,
                        role: str = "participant") -> SessionPrincipal:
    if role not in USER_ROLES:
        raise ValidationError(f"Unknown role: {role}")
    if await retrieve_user_by_email(db, email):
        raise ValidationError(f"User with email {email} exists")

    now = server_timestamp()
    new_user = User(
        email=email.strip().lower(),
        display_name=display_name,
        role=role,
        password_hash=encrypt_password(password),
        created_at=now,
        last_login=now,
    )
    with backend_errors(db, "registering user"):
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
    logger.info(f"User {new_user.uid} registered as {role}")

    return await open_session(db, new_user)


# ------------------ Sign in / Sign out ------------------
async def sign_in(db: Session, email: str, password: str) -> SessionPrincipal:
    user = await retrieve_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthRequired("Invalid email or password")

    with backend_errors(db, "signing in"):
        user.last_login = server_timestamp()
        db.commit()
        db.refresh(user)
    logger.info(f"User {user.uid} signed in")

    return await open_session(db, user)


async def sign_out(db: Session, token: str):
    with backend_errors(db, "signing out"):
        auth_session = db.query(AuthSession).filter(AuthSession.token == token).first()
        if not auth_session:
            return
        uid = auth_session.uid
        db.delete(auth_session)
        db.commit()
    profile_cache.invalidate(uid)
    logger.info(f"User {uid} signed out")


async def resolve_session(db: Session, token: Optional[str]) -> SessionPrincipal:
    """The principal behind a bearer token; AuthRequired if there is none."""
    if not token:
        raise AuthRequired()

    with backend_errors(db, "resolving session"):
        auth_session = db.query(AuthSession).filter(AuthSession.token == token).first()
    if not auth_session:
        raise AuthRequired("Session expired or signed out")

    if auth_session.created_at + timedelta(hours=constant_file.session_ttl_hours) < server_timestamp():
        uid = auth_session.uid
        with backend_errors(db, "expiring session"):
            db.delete(auth_session)
            db.commit()
        logger.info(f"Session of {uid} expired")
        raise AuthRequired("Session expired or signed out")

    profile = profile_cache.get(auth_session.uid)
    if profile is None:
        profile = await get_user_data(db, auth_session.uid)
        if profile is None:
            raise AuthRequired("Account no longer exists")
    return principal_from_profile(profile, token)


# ------------------ Profile ------------------
async def get_user_data(db: Session, uid: str) -> Optional[dict]:
    with backend_errors(db, "getting user data"):
        user = db.query(User).filter(User.uid == uid).first()
    if not user:
        profile_cache.invalidate(uid)
        return None
    profile = serialize_user(user)
    profile_cache.put(uid, profile)
    return profile


async def update_user_profile(db: Session, uid: str, update_data: dict) -> dict:
    changes = {k: v for k, v in update_data.items() if k in ("display_name", "photo_url")}
    with backend_errors(db, "updating profile"):
        user = db.query(User).filter(User.uid == uid).first()
        if not user:
            raise NotFound(f"User {uid} not found")
        for key, val in changes.items():
            setattr(user, key, val)
        db.commit()
        db.refresh(user)
    profile_cache.merge(uid, changes)
    logger.info(f"Profile of {uid} updated ({', '.join(sorted(changes)) or 'no fields'})")
    return serialize_user(user)


# ------------------ Password reset ------------------
async def request_password_reset(db: Session, email: str) -> bool:
    """Mail a one-time code; unknown addresses are accepted silently."""
    owner = await retrieve_user_by_email(db, email)
    if not owner:
        return False

    now = server_timestamp()
    expires_at = now + timedelta(minutes=constant_file.otp_ttl_minutes)

    with backend_errors(db, "storing reset code"):
        otp_record = db.query(OTPRecord).filter(OTPRecord.owner_id == owner.uid).first()
        if otp_record and otp_record.expires_at > now:
            otp_to_send = otp_record.otp
        elif otp_record:
            otp_record.otp = generate_otp()
            otp_record.failed_attempts = 0
            otp_record.expires_at = expires_at
            otp_record.created_at = now
            otp_to_send = otp_record.otp
        else:
            otp_to_send = generate_otp()
            db.add(OTPRecord(
                owner_id=owner.uid, otp=otp_to_send, failed_attempts=0,
                expires_at=expires_at, created_at=now,
            ))
        db.commit()

    return await send_email(owner.email, otp_to_send)


async def reset_password(db: Session, email: str, otp: str, new_password: str):
    owner = await retrieve_user_by_email(db, email)
    if not owner:
        raise ValidationError("Invalid or expired reset code")

    with backend_errors(db, "resetting password"):
        otp_record = db.query(OTPRecord).filter(OTPRecord.owner_id == owner.uid).first()
        if not otp_record:
            raise ValidationError("Invalid or expired reset code")
        if otp_record.otp != otp:
            otp_record.failed_attempts = (otp_record.failed_attempts or 0) + 1
            if otp_record.failed_attempts >= constant_file.otp_max_attempts:
                # Too many guesses burn the code; the user has to request a new one
                db.delete(otp_record)
                logger.warning(f"Reset code for {owner.uid} discarded after {otp_record.failed_attempts} failed attempts")
            db.commit()
            raise ValidationError("Invalid or expired reset code")
        if otp_record.expires_at < server_timestamp():
            db.delete(otp_record)
            db.commit()
            raise ValidationError("Invalid or expired reset code")

        # The code is single use and the new password ends every open session
        db.delete(otp_record)
        db.query(AuthSession).filter(AuthSession.uid == owner.uid).delete()
        owner.password_hash = encrypt_password(new_password)
        db.commit()
    profile_cache.invalidate(owner.uid)
    logger.info(f"Password reset for {owner.uid}")
