import json
import os
import tempfile
import time
from pathlib import Path
from urllib.parse import urlencode

_TMP_DIR = tempfile.mkdtemp(prefix="giftminer-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_TMP_DIR) / 'test.db'}"
os.environ["BOT_TOKEN"] = "123456:TEST-BOT-TOKEN"
os.environ["INIT_DATA_MAX_AGE_SECONDS"] = "0"

import pytest
from fastapi.testclient import TestClient

from giftminer.core.telegram import sign_init_data
from giftminer.db.base import Base
from giftminer.db.session import SessionLocal, engine
from giftminer.main import app, init_db

BOT_TOKEN = os.environ["BOT_TOKEN"]


def make_init_data(user: dict, bot_token: str = BOT_TOKEN, **extra) -> str:
    pairs = [
        ("auth_date", str(extra.pop("auth_date", int(time.time())))),
        ("query_id", "AAHdF6IQAAAAAN0XohDhrOrc"),
        ("user", json.dumps(user, separators=(",", ":"))),
    ]
    pairs.extend((key, str(value)) for key, value in extra.items())
    pairs.append(("hash", sign_init_data(pairs, bot_token)))
    return urlencode(pairs)


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client):
    def _login(tg_id: int = 1001, ref: str | None = None, **fields) -> dict:
        user = {"id": tg_id, "first_name": "Test", "username": f"user{tg_id}", **fields}
        body = {"initDataRaw": make_init_data(user)}
        if ref is not None:
            body["ref"] = ref
        response = client.post("/auth/telegram", json=body)
        assert response.status_code == 200, response.text
        return response.json()["user"]

    return _login
