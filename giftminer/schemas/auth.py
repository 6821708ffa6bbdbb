from pydantic import BaseModel, ConfigDict


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    language_code: str | None = None


class TelegramAuthRequest(BaseModel):
    initDataRaw: str | None = None
    ref: str | None = None


class AuthUser(BaseModel):
    id: str
    tgId: int
    username: str | None = None
    firstName: str | None = None
    lastName: str | None = None
    languageCode: str | None = None
    balanceCents: int
    createdAt: str | None = None


class AuthResponse(BaseModel):
    ok: bool = True
    user: AuthUser
