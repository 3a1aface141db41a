from datetime import datetime

import pytest
from bson import ObjectId
from mongomock_motor import AsyncMongoMockClient

from core.authorization import AuthContext, RestaurantRole, RestaurantStatus
from core.dependencies import CurrentUser
from db.db_operation import mongo_conn
from models.user import RestaurantAssociation


@pytest.fixture
def mock_db(monkeypatch):
    db = AsyncMongoMockClient()["foodie_test"]
    monkeypatch.setattr(mongo_conn, "users_collection", db["users"])
    monkeypatch.setattr(mongo_conn, "restaurants_collection", db["restaurants"])
    monkeypatch.setattr(mongo_conn, "deals_collection", db["deals"])
    return db


def make_restaurant(status=RestaurantStatus.LIVE.value, locations=2, super_admin=None, admins=(), users=()):
    return {
        "_id": ObjectId(),
        "name": "Pasta Place",
        "status": status,
        "super_admin": super_admin or ObjectId(),
        "admins": list(admins),
        "users": list(users),
        "locations": [
            {"_id": ObjectId(), "nickname": f"Site {i}", "geometry": {"type": "Point", "coordinates": [-2.24 + i, 53.48]}}
            for i in range(locations)
        ],
        "cuisines": ["Italian"],
        "dietary_requirements": ["Vegan"],
    }


def make_principal(user_id, restaurant_id, role=RestaurantRole.SUPER_ADMIN.value, email_confirmed=True):
    return CurrentUser(
        id=str(user_id),
        email="owner@example.com",
        email_confirmed=email_confirmed,
        restaurant=RestaurantAssociation(id=str(restaurant_id), role=role),
    )


def make_deal(restaurant, start, end, is_expired=False, views=None, saves=None, updated_at=None, **extra):
    doc = {
        "_id": ObjectId(),
        "restaurant": {"id": restaurant["_id"], "name": restaurant["name"]},
        "name": "Two for one",
        "description": "Two pizzas for the price of one",
        "start_date": start,
        "end_date": end,
        "is_expired": is_expired,
        "locations": [],
        "cuisines": restaurant["cuisines"],
        "dietary_requirements": restaurant["dietary_requirements"],
        "views": views or {"count": 0, "users": []},
        "saves": saves or {"count": 0, "users": []},
        "created_at": start,
        "updated_at": updated_at or start,
    }
    doc.update(extra)
    return doc


@pytest.fixture
def restaurant():
    return make_restaurant()


@pytest.fixture
def owner_ctx(restaurant):
    principal = make_principal(restaurant["super_admin"], restaurant["_id"])
    return AuthContext(principal=principal, restaurant=restaurant, role=RestaurantRole.SUPER_ADMIN)


@pytest.fixture
def now():
    return datetime(2024, 6, 15, 12, 0, 0)
