import asyncio
from datetime import timedelta

import pytest

from eventease.controller import user_controller
from eventease.controller.user_controller import (
    get_user_data,
    register_user,
    request_password_reset,
    reset_password,
    resolve_session,
    sign_in,
    sign_out,
    update_user_profile,
)
from eventease.cryptography import encrypt_password, verify_password
from eventease.database import server_timestamp
from eventease.errors import AuthRequired, NotFound, ValidationError
from eventease.models.auth_session_model import AuthSession
from eventease.models.otp_records_model import OTPRecord
from eventease.session import profile_cache


@pytest.fixture
def sent_codes(monkeypatch):
    codes = {}

    async def capture(email, otp):
        codes[email] = otp
        return True

    monkeypatch.setattr(user_controller, "send_email", capture)
    return codes


def test_password_hash_round_trip():
    hashed = encrypt_password("hunter22")
    assert hashed.startswith("$pbkdf2-sha256$")
    assert "hunter22" not in hashed
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)
    assert not verify_password("hunter22", "not-a-hash")


def test_registered_user_gets_a_resolvable_session(db):
    principal = asyncio.run(register_user(db, "Ada@Example.com", "secret1", "Ada", "organizer"))

    assert principal.email == "ada@example.com"
    assert principal.is_organizer and not principal.is_admin

    resolved = asyncio.run(resolve_session(db, principal.token))
    assert resolved == principal


def test_duplicate_email_and_unknown_role_are_rejected(db):
    asyncio.run(register_user(db, "ada@example.com", "secret1", "Ada"))

    with pytest.raises(ValidationError):
        asyncio.run(register_user(db, "ADA@example.com", "secret2", "Ada Again"))
    with pytest.raises(ValidationError):
        asyncio.run(register_user(db, "root@example.com", "secret1", "Root", "superuser"))


def test_sign_in_checks_password(db):
    asyncio.run(register_user(db, "ada@example.com", "secret1", "Ada"))

    with pytest.raises(AuthRequired):
        asyncio.run(sign_in(db, "ada@example.com", "wrong"))
    with pytest.raises(AuthRequired):
        asyncio.run(sign_in(db, "nobody@example.com", "secret1"))

    principal = asyncio.run(sign_in(db, "ada@example.com", "secret1"))
    assert principal.display_name == "Ada"


def test_signed_out_token_no_longer_resolves(db):
    principal = asyncio.run(register_user(db, "ada@example.com", "secret1", "Ada"))

    asyncio.run(sign_out(db, principal.token))

    assert profile_cache.get(principal.uid) is None
    with pytest.raises(AuthRequired):
        asyncio.run(resolve_session(db, principal.token))
    with pytest.raises(AuthRequired):
        asyncio.run(resolve_session(db, None))


def test_profile_update_is_visible_through_the_cache(db):
    principal = asyncio.run(register_user(db, "ada@example.com", "secret1", "Ada"))

    profile = asyncio.run(update_user_profile(db, principal.uid, {"display_name": "Ada L.", "role": "admin"}))

    assert profile["display_name"] == "Ada L."
    assert profile["role"] == "participant"
    assert profile_cache.get(principal.uid)["display_name"] == "Ada L."
    assert asyncio.run(resolve_session(db, principal.token)).display_name == "Ada L."


def test_profile_is_reloaded_after_cache_miss(db):
    principal = asyncio.run(register_user(db, "ada@example.com", "secret1", "Ada"))
    profile_cache.clear()

    assert asyncio.run(resolve_session(db, principal.token)).uid == principal.uid
    assert profile_cache.get(principal.uid)["email"] == "ada@example.com"


def test_missing_user(db):
    assert asyncio.run(get_user_data(db, "missing")) is None
    with pytest.raises(NotFound):
        asyncio.run(update_user_profile(db, "missing", {"display_name": "x"}))


def test_password_reset_with_mailed_code(db, sent_codes):
    principal = asyncio.run(register_user(db, "ada@example.com", "secret1", "Ada"))

    assert asyncio.run(request_password_reset(db, "ada@example.com"))
    code = sent_codes["ada@example.com"]
    assert len(code) == 6 and code.isdigit()

    # Asking again while the code is valid resends the same one
    asyncio.run(request_password_reset(db, "ada@example.com"))
    assert sent_codes["ada@example.com"] == code

    asyncio.run(reset_password(db, "ada@example.com", code, "brand-new"))

    with pytest.raises(AuthRequired):
        asyncio.run(resolve_session(db, principal.token))
    with pytest.raises(AuthRequired):
        asyncio.run(sign_in(db, "ada@example.com", "secret1"))
    assert asyncio.run(sign_in(db, "ada@example.com", "brand-new")).uid == principal.uid

    # Codes are single use
    with pytest.raises(ValidationError):
        asyncio.run(reset_password(db, "ada@example.com", code, "another-one"))


def test_password_reset_rejects_wrong_code(db, sent_codes):
    asyncio.run(register_user(db, "ada@example.com", "secret1", "Ada"))
    asyncio.run(request_password_reset(db, "ada@example.com"))
    wrong = "000000" if sent_codes["ada@example.com"] != "000000" else "111111"

    with pytest.raises(ValidationError):
        asyncio.run(reset_password(db, "ada@example.com", wrong, "brand-new"))
    assert asyncio.run(sign_in(db, "ada@example.com", "secret1"))


def test_password_reset_for_unknown_email_sends_nothing(db, sent_codes):
    assert asyncio.run(request_password_reset(db, "nobody@example.com")) is False
    assert sent_codes == {}


def test_reset_code_is_discarded_after_too_many_wrong_guesses(db, sent_codes, monkeypatch):
    monkeypatch.setattr(user_controller.constant_file, "otp_max_attempts", 3)
    asyncio.run(register_user(db, "ada@example.com", "secret1", "Ada"))
    asyncio.run(request_password_reset(db, "ada@example.com"))
    code = sent_codes["ada@example.com"]
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(3):
        with pytest.raises(ValidationError):
            asyncio.run(reset_password(db, "ada@example.com", wrong, "brand-new"))

    with pytest.raises(ValidationError):
        asyncio.run(reset_password(db, "ada@example.com", code, "brand-new"))
    assert db.query(OTPRecord).count() == 0
    assert asyncio.run(sign_in(db, "ada@example.com", "secret1"))


def test_wrong_guesses_survive_a_resend_of_the_same_code(db, sent_codes, monkeypatch):
    monkeypatch.setattr(user_controller.constant_file, "otp_max_attempts", 2)
    asyncio.run(register_user(db, "ada@example.com", "secret1", "Ada"))
    asyncio.run(request_password_reset(db, "ada@example.com"))
    wrong = "000000" if sent_codes["ada@example.com"] != "000000" else "111111"

    with pytest.raises(ValidationError):
        asyncio.run(reset_password(db, "ada@example.com", wrong, "brand-new"))
    asyncio.run(request_password_reset(db, "ada@example.com"))
    with pytest.raises(ValidationError):
        asyncio.run(reset_password(db, "ada@example.com", wrong, "brand-new"))

    assert db.query(OTPRecord).count() == 0


def test_old_sessions_expire(db, monkeypatch):
    monkeypatch.setattr(user_controller.constant_file, "session_ttl_hours", 1)
    principal = asyncio.run(register_user(db, "ada@example.com", "secret1", "Ada"))

    auth_session = db.query(AuthSession).filter(AuthSession.token == principal.token).one()
    auth_session.created_at = server_timestamp() - timedelta(hours=2)
    db.commit()

    with pytest.raises(AuthRequired):
        asyncio.run(resolve_session(db, principal.token))
    assert db.query(AuthSession).filter(AuthSession.token == principal.token).first() is None

    fresh = asyncio.run(sign_in(db, "ada@example.com", "secret1"))
    assert asyncio.run(resolve_session(db, fresh.token)).uid == principal.uid
