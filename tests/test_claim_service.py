from datetime import datetime, timedelta

import pytest

from giftminer.core import accrual
from giftminer.core.exceptions import ClaimConflictError, NotFoundError
from giftminer.db.models import GiftType, Txn, User, UserGift
from giftminer.db.session import SessionLocal
from giftminer.services import gift_service

NOW = datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture
def holding(db):
    user = User(tg_id=31337, balance_cents=500)
    db.add(user)
    db.commit()
    gift_service.sync_user_gifts(db, user.id)
    row = (
        db.query(UserGift)
        .join(GiftType)
        .filter(UserGift.user_id == user.id, GiftType.code == "plush_pepe")
        .one()
    )
    row.last_claim_at = NOW - timedelta(hours=30)
    db.commit()
    return user.id, row.gift_type_id


def test_claim_conserves_balance(db, holding):
    user_id, gift_type_id = holding

    result = gift_service.claim_gift(db, user_id, gift_type_id, now=NOW)

    assert result == {"ok": True, "gained": 3240}
    db.expire_all()
    assert db.query(User).filter(User.id == user_id).one().balance_cents == 500 + 3240
    txns = db.query(Txn).all()
    assert [t.amount_cents for t in txns] == [3240]


def test_claim_advances_clock_by_whole_buckets(db, holding):
    user_id, gift_type_id = holding

    gift_service.claim_gift(db, user_id, gift_type_id, now=NOW)

    db.expire_all()
    row = db.query(UserGift).filter(UserGift.user_id == user_id, UserGift.gift_type_id == gift_type_id).one()
    # Six hours of progress toward the next bucket are kept.
    assert row.last_claim_at == NOW - timedelta(hours=6)
    later = gift_service.claim_gift(db, user_id, gift_type_id, now=NOW + timedelta(hours=6))
    assert later == {"ok": True, "gained": 3 * 540}


def test_first_claim_on_fresh_holding_is_capped_and_starts_clock(db, holding):
    user_id, _ = holding
    gold = db.query(GiftType).filter(GiftType.code == "gold_coin").one()

    result = gift_service.claim_gift(db, user_id, gold.id, now=NOW)

    assert result == {"ok": True, "gained": 14 * 1200}
    db.expire_all()
    row = db.query(UserGift).filter(UserGift.user_id == user_id, UserGift.gift_type_id == gold.id).one()
    assert row.last_claim_at == NOW


def test_nothing_to_claim_changes_nothing(db, holding):
    user_id, gift_type_id = holding
    gift_service.claim_gift(db, user_id, gift_type_id, now=NOW)

    result = gift_service.claim_gift(db, user_id, gift_type_id, now=NOW + timedelta(hours=1))

    assert result == {"ok": False, "gained": 0}
    db.expire_all()
    assert db.query(Txn).count() == 1
    assert db.query(User).filter(User.id == user_id).one().balance_cents == 500 + 3240


def test_claim_missing_holding(db, holding):
    user_id, _ = holding
    with pytest.raises(NotFoundError):
        gift_service.claim_gift(db, user_id, "missing", now=NOW)


def test_concurrent_claim_does_not_double_count(db, holding, monkeypatch):
    user_id, gift_type_id = holding
    original_project = accrual.project
    state = {"raced": False, "rival": None}

    def racing_project(*args, **kwargs):
        result = original_project(*args, **kwargs)
        if not state["raced"]:
            state["raced"] = True
            rival = SessionLocal()
            try:
                state["rival"] = gift_service.claim_gift(rival, user_id, gift_type_id, now=NOW)
            finally:
                rival.close()
        return result

    monkeypatch.setattr(accrual, "project", racing_project)

    result = gift_service.claim_gift(db, user_id, gift_type_id, now=NOW)

    assert state["rival"] == {"ok": True, "gained": 3240}
    assert result == {"ok": False, "gained": 0}
    db.expire_all()
    assert db.query(User).filter(User.id == user_id).one().balance_cents == 500 + 3240
    assert db.query(Txn).count() == 1


def test_claim_gives_up_after_repeated_conflicts(db, holding, monkeypatch):
    user_id, gift_type_id = holding
    original_project = accrual.project

    def always_lose(*args, **kwargs):
        result = original_project(*args, **kwargs)
        other = SessionLocal()
        try:
            row = other.query(UserGift).filter(
                UserGift.user_id == user_id, UserGift.gift_type_id == gift_type_id
            ).one()
            row.quantity += 1
            other.commit()
        finally:
            other.close()
        return result

    monkeypatch.setattr(accrual, "project", always_lose)

    with pytest.raises(ClaimConflictError):
        gift_service.claim_gift(db, user_id, gift_type_id, now=NOW)
    db.expire_all()
    assert db.query(Txn).count() == 0
    assert db.query(User).filter(User.id == user_id).one().balance_cents == 500
