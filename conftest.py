import os
import sys

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pytest
from fastapi.testclient import TestClient

from db import Base, engine, get_db
from main import app
from utils.auth_utils import create_token, hash_password
from utils.crud_user import create_user


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


def _make_user(username: str, role: str, district: str | None = None) -> dict:
    with get_db() as db:
        user = create_user(
            db,
            username=username,
            role=role,
            district=district,
            password_hash=hash_password("secret123"),
        )
        db.flush()
        token = create_token(user.id, role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return _make_user("central", "central_admin")


@pytest.fixture
def district_headers():
    return _make_user("mohali_admin", "district_admin", district="SAS Nagar")
