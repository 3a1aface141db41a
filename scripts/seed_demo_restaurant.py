# scripts/seed_demo_restaurant.py
import asyncio
from bson import ObjectId
from db.db_operation import mongo_conn
from core.authorization import RestaurantRole, RestaurantStatus
from utils.dates import utcnow
from utils.hash import hash_password

async def seed():
    users = mongo_conn.users_collection
    restaurants = mongo_conn.restaurants_collection
    owner_email = "owner@foodie.dev"
    existing = await users.find_one({"email": owner_email})
    if existing:
        print("Demo restaurant owner already exists")
        return
    now = utcnow()
    owner_id = ObjectId()
    restaurant_id = ObjectId()
    await restaurants.insert_one({
        "_id": restaurant_id,
        "name": "Demo Kitchen",
        "status": RestaurantStatus.LIVE.value,
        "super_admin": owner_id,
        "admins": [],
        "users": [],
        "locations": [
            {"_id": ObjectId(), "nickname": "High Street", "geometry": {"type": "Point", "coordinates": [-2.2426, 53.4808]}},
            {"_id": ObjectId(), "nickname": "Old Town", "geometry": {"type": "Point", "coordinates": [-2.2301, 53.4794]}},
        ],
        "cuisines": ["Italian"],
        "dietary_requirements": ["Vegetarian"],
        "created_at": now,
        "updated_at": now
    })
    await users.insert_one({
        "_id": owner_id,
        "email": owner_email,
        "full_name": "Demo Owner",
        "password": hash_password("Owner@1234"),
        "email_confirmed": True,
        "restaurant": {"id": restaurant_id, "role": RestaurantRole.SUPER_ADMIN.value},
        "token_version": 0,
        "created_at": now,
        "updated_at": now
    })
    print("Created demo restaurant:", restaurant_id, "owned by", owner_email)

if __name__ == "__main__":
    asyncio.run(seed())
