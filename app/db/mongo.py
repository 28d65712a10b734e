import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

from app.core.config import settings

logger = structlog.get_logger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    # Create indexes
    await create_indexes(mongodb.db)
    logger.info("mongo_connected", database=settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("mongo_disconnected")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    # Account email unique index
    await db["accounts"].create_index("email", unique=True)

    # Invitation indexes
    await db["invitations"].create_index("token", unique=True)
    await db["invitations"].create_index([
        ("inviter_id", ASCENDING),
        ("invitee_email", ASCENDING),
        ("status", ASCENDING)
    ])

    # Friendship indexes
    await db["friendships"].create_index([("account_id", ASCENDING), ("created_at", ASCENDING)])

    # Expense indexes
    await db["expenses"].create_index([("pair_key", ASCENDING), ("created_at", ASCENDING)])
    await db["expenses"].create_index(
        [("created_by", ASCENDING), ("idempotency_key", ASCENDING)],
        unique=True,
        partialFilterExpression={"idempotency_key": {"$type": "string"}}
    )
