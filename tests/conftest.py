import os

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PROMOTION_SWEEP_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret"

from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.plat import Plat, Ingredient
from models.promotion import Promotion
from models.users import User, ROLE_CUSTOMER, ROLE_CHEF, ROLE_ADMIN
from utils.clock import utcnow
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

PASSWORD = "secret123"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make(role=ROLE_CUSTOMER, email=None, **kwargs):
        counter["n"] += 1
        user = User(
            email=email or f"{role}{counter['n']}@example.com",
            password_hash=get_password_hash(PASSWORD),
            role=role,
            first_name=kwargs.get("first_name", role.capitalize()),
            last_name=kwargs.get("last_name", f"Number{counter['n']}"),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def customer(make_user):
    return make_user(ROLE_CUSTOMER)


@pytest.fixture()
def chef(make_user):
    return make_user(ROLE_CHEF)


@pytest.fixture()
def admin(make_user):
    return make_user(ROLE_ADMIN)


@pytest.fixture()
def make_plat(db):
    def _make(chef, price="20.00", name="Couscous royal", ingredients=(), **kwargs):
        plat = Plat(
            chef_id=chef.id,
            name=name,
            price=Decimal(price),
            category=kwargs.get("category", "main"),
            description=kwargs.get("description"),
        )
        plat.ingredients = [
            Ingredient(name=n, price=Decimal(p), is_free=Decimal(p) == 0) for n, p in ingredients
        ]
        db.add(plat)
        db.commit()
        db.refresh(plat)
        return plat

    return _make


@pytest.fixture()
def make_promotion(db):
    def _make(plat, pct="10", starts_at=None, ends_at=None, is_active=True, created_at=None):
        now = utcnow()
        promotion = Promotion(
            plat_id=plat.id,
            discount_percentage=Decimal(pct),
            starts_at=starts_at or now - timedelta(hours=1),
            ends_at=ends_at or now + timedelta(days=1),
            is_active=is_active,
        )
        if created_at is not None:
            promotion.created_at = created_at
        db.add(promotion)
        db.commit()
        db.refresh(promotion)
        return promotion

    return _make


@pytest.fixture()
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": str(user.id), "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers
