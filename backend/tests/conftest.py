import os

# Settings are read at import time, so the environment must be prepared first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_API_URL"] = "https://stripe.test"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.product import Product
from models.users import User, ROLE_ADMIN, ROLE_USER
from utils.hashing import get_password_hash
from utils.tokenJWT import issue_token

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_user(db_session, username, email, role):
    user = User(
        username=username,
        email=email,
        password_hash=get_password_hash("Password123!"),
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def customer(db_session):
    return _make_user(db_session, "alice", "alice@example.com", ROLE_USER)


@pytest.fixture
def other_customer(db_session):
    return _make_user(db_session, "bob", "bob@example.com", ROLE_USER)


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, "admin", "admin@example.com", ROLE_ADMIN)


def auth_headers(user):
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
def make_product(db_session):
    def _make(name="Test Product", price="25.99", stock=10, category="Electronics"):
        product = Product(
            name=name,
            description=f"{name} description",
            price=Decimal(price),
            stock=stock,
            category=category,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _make


def current_stock(db_session, product_id):
    db_session.expire_all()
    return db_session.get(Product, product_id).stock
