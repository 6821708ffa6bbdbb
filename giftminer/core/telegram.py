"""Telegram Mini App init data verification.

Implements the two-stage HMAC documented by Telegram: the signing key is
HMAC-SHA256("WebAppData", bot_token) and the payload signature is the hex
HMAC-SHA256 of the sorted ``key=value`` lines (without ``hash``) under that key.
"""

import hashlib
import hmac
import json
import time
from urllib.parse import parse_qsl

from pydantic import ValidationError as PydanticValidationError

from giftminer.core.exceptions import AppException, AuthError
from giftminer.schemas.auth import TelegramUser


def _secret_key(bot_token: str) -> bytes:
    return hmac.new(b"WebAppData", bot_token.encode("utf-8"), hashlib.sha256).digest()


def build_data_check_string(pairs: list[tuple[str, str]]) -> str:
    return "\n".join(f"{key}={value}" for key, value in sorted(pairs))


def sign_init_data(pairs: list[tuple[str, str]], bot_token: str) -> str:
    return hmac.new(
        _secret_key(bot_token),
        build_data_check_string(pairs).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_init_data(
    init_data_raw: str | None,
    bot_token: str,
    max_age_seconds: int = 0,
    now: float | None = None,
) -> TelegramUser:
    """Return the signed ``user`` of a Telegram launch payload or raise ``AuthError``."""
    if not bot_token:
        raise AppException("Bot token is not configured", status_code=500, code="bot_token_not_configured")
    if not init_data_raw:
        raise AuthError("no_init_data", "Init data is required")

    pairs = parse_qsl(init_data_raw, keep_blank_values=True)
    provided_hash = next((value for key, value in pairs if key == "hash"), None)
    if not provided_hash:
        raise AuthError("bad_hash", "Init data signature is invalid")
    pairs = [(key, value) for key, value in pairs if key != "hash"]

    computed = sign_init_data(pairs, bot_token)
    if not hmac.compare_digest(computed.encode("ascii"), provided_hash.encode("utf-8")):
        raise AuthError("bad_hash", "Init data signature is invalid")

    fields = dict(pairs)
    if max_age_seconds > 0:
        try:
            auth_date = int(fields.get("auth_date", ""))
        except ValueError:
            raise AuthError("init_data_expired", "Init data has no valid auth_date")
        current = time.time() if now is None else now
        if current - auth_date > max_age_seconds:
            raise AuthError("init_data_expired", "Init data is too old")

    raw_user = fields.get("user")
    if not raw_user:
        raise AuthError("bad_user", "Init data carries no user")
    try:
        return TelegramUser.model_validate(json.loads(raw_user))
    except (ValueError, PydanticValidationError) as exc:
        raise AuthError("bad_user", "Init data user is malformed") from exc
