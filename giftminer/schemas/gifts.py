from pydantic import BaseModel, Field


class GiftSyncRequest(BaseModel):
    userId: str = Field(min_length=1)


class GiftClaimRequest(BaseModel):
    userId: str = Field(min_length=1)
    giftTypeId: str = Field(min_length=1)


class UserGiftItem(BaseModel):
    userGiftId: str
    giftTypeId: str
    title: str
    quantity: int
    claimableCents: int


class ClaimResult(BaseModel):
    ok: bool
    gained: int


class BalanceResponse(BaseModel):
    balanceCents: int
    withdrawEnabled: bool = False
