import os
import pytest
from datetime import date, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from app.main import app
from app.db import Base, get_db, init_database
from app.models.equipment import Equipment, EquipmentCategory
from app.models.user import User
from app.utils.auth import create_access_token, get_password_hash

# Test database setup
if not os.path.exists("./out"):
    os.makedirs("./out")

SQLALCHEMY_DATABASE_URL = "sqlite:///./out/tests.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create test tables
init_database(engine)


# Dependency override
def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db

client = TestClient(app)


# Fixtures
@pytest.fixture(autouse=True)
def clear_db():
    """Clear all data from all tables after each test"""
    with engine.connect() as conn:
        trans = conn.begin()
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        trans.commit()


@pytest.fixture
def test_db():
    """Provide a database session for testing"""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_next_user():
    """Helper function to generate unique usernames"""
    if not hasattr(get_next_user, "user_count"):
        get_next_user.user_count = 0
    get_next_user.user_count += 1
    return get_next_user.user_count


def make_user(db, password="testpassword"):
    """Insert a user directly into the database"""
    number = get_next_user()
    user = User(
        username=f"user_{number}",
        email=f"user_{number}@example.com",
        hashed_password=password,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(user):
    """Bearer headers for a user without going through /auth/login"""
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_user_data():
    """Fixture for test user data with unique username"""
    username = get_next_user()
    return {
        "username": f"user_{username}",
        "email": f"user_{username}@example.com",
        "password": "testpassword",
    }


@pytest.fixture
def owner(test_db):
    return make_user(test_db)


@pytest.fixture
def renter(test_db):
    return make_user(test_db)


@pytest.fixture
def owner_headers(owner):
    return headers_for(owner)


@pytest.fixture
def renter_headers(renter):
    return headers_for(renter)


@pytest.fixture
def auth_headers(test_db, test_user_data):
    """Fixture to get authentication headers"""
    # Create test user directly in database
    hashed_password = get_password_hash(test_user_data["password"])
    user = User(
        username=test_user_data["username"],
        email=test_user_data["email"],
        hashed_password=hashed_password,
    )
    test_db.add(user)
    test_db.commit()

    # Login to get access token
    login_response = client.post(
        "/auth/login",
        data={
            "username": test_user_data["username"],
            "password": test_user_data["password"],
        },
    )
    token = login_response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def make_equipment(db, owner, **overrides):
    """Insert a listing available for the next sixty days"""
    data = {
        "title": "Sony Alpha 7S III",
        "description": "Full-frame video camera for low-light shoots. Two batteries and charger included.",
        "category": EquipmentCategory.cameras,
        "price_per_day": 89,
        "available_from": date.today(),
        "available_until": date.today() + timedelta(days=60),
        "location": "Berlin",
        "image_urls": ["https://example.com/camera1.jpg"],
    }
    data.update(overrides)
    equipment = Equipment(owner_id=owner.id, **data)
    db.add(equipment)
    db.commit()
    db.refresh(equipment)
    return equipment


@pytest.fixture
def camera(test_db, owner):
    return make_equipment(test_db, owner)
