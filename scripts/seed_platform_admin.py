# scripts/seed_platform_admin.py
import asyncio
from core.dependencies import PLATFORM_ADMIN
from db.db_operation import mongo_conn
from utils.dates import utcnow
from utils.hash import hash_password

async def seed():
    users = mongo_conn.users_collection
    admin_email = "superadmin@platform.com"
    existing = await users.find_one({"email": admin_email})
    if existing:
        print("Platform admin already exists")
        return
    now = utcnow()
    result = await users.insert_one({
        "email": admin_email,
        "full_name": "Platform SuperAdmin",
        "password": hash_password("Admin@1234"),
        "email_confirmed": True,
        "platform_role": PLATFORM_ADMIN,
        "restaurant": None,
        "token_version": 0,
        "created_at": now,
        "updated_at": now
    })
    print("Created platform admin:", admin_email, result.inserted_id)

if __name__ == "__main__":
    asyncio.run(seed())
