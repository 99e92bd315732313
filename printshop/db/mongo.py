from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from printshop.core.config import settings
from printshop.core.logging import get_logger

logger = get_logger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    # Order indexes
    await mongodb.db["service_orders"].create_index("created_at")
    await mongodb.db["service_orders"].create_index([("seller_id", 1), ("created_at", -1)])
    await mongodb.db["service_orders"].create_index("payment_status")

    # Installment indexes
    await mongodb.db["pending_installments"].create_index("purchase_id")
    await mongodb.db["pending_installments"].create_index([("paid", 1), ("due_date", 1)])

    # Cash flow indexes
    await mongodb.db["expenses"].create_index("date")
    await mongodb.db["expenses"].create_index("supplier_id")

    await mongodb.db["notifications"].create_index([("user_id", 1), ("read", 1)])

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
