from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("DB_OPERATION")

async def create_indexes():
    deals_collection = mongo_conn.deals_collection
    await deals_collection.create_index("restaurant.id")
    await deals_collection.create_index([("is_expired", ASCENDING), ("end_date", ASCENDING)])
    await deals_collection.create_index([("updated_at", DESCENDING)])
    await mongo_conn.users_collection.create_index("email", unique=True)
    logger.info("Indexes created")

class MongoConnection:
    def __init__(self):
        logger.info("Initializing MongoDB Connection")
        self.client = AsyncIOMotorClient(settings.MONGO_URI)
        self.db = self.client[settings.DB_NAME]
        self.users_collection = self.db["users"]
        self.restaurants_collection = self.db["restaurants"]
        self.deals_collection = self.db["deals"]

    async def connect(self):
        try:
            # Force an actual connection & authentication check
            await self.db.command("ping")
            logger.info("Successfully connected to MongoDB and authenticated.")
            logger.info(f"Using Database: {settings.DB_NAME}")
        except Exception as e:
            logger.error(f"Could not connect to MongoDB: {e}")
            raise e

mongo_conn = MongoConnection()
