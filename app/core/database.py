"""

app/core/database.py

"""


from motor.motor_asyncio import AsyncIOMotorClient
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

class Database:
    client: AsyncIOMotorClient = None
    db = None

db = Database()

async def connect_to_mongo():
    """Create database connection."""
    try:
        db.client = AsyncIOMotorClient(settings.MONGODB_URL)
        db.db = db.client[settings.DATABASE_NAME]

        # Create indexes for better performance
        await create_indexes()

        await create_report_indexes(db.db)

        logger.info("Connected to MongoDB")
    except Exception as e:
        logger.error(f"Could not connect to MongoDB: {e}")
        raise

async def close_mongo_connection():
    """Close database connection."""
    if db.client:
        db.client.close()
        logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes for the collaborating collections"""
    try:
        # User indexes
        await db.db.users.create_index([("email", 1)], unique=True)
        await db.db.users.create_index([("role", 1)])

        # Notification indexes
        await db.db.notifications.create_index([("user_id", 1), ("created_at", -1)])

        logger.info("Database indexes created")
    except Exception as e:
        logger.error(f"Error creating indexes: {e}")

async def create_report_indexes(db):
    """Create indexes for reports collection"""

    # At most one open report per reporter and content item
    await db.reports.create_index(
        [("reporter_id", 1), ("content_type", 1), ("content_id", 1)],
        name="reports_open_unique",
        unique=True,
        partialFilterExpression={"is_open": True}
    )

    # Content-scoped lookups (related reports, content reports)
    await db.reports.create_index([("content_type", 1), ("content_id", 1)])

    # Admin listing and stats
    await db.reports.create_index([("status", 1), ("created_at", -1)])

    # Reporter's own reports
    await db.reports.create_index([
        ("reporter_id", 1),
        ("created_at", -1)
    ])

def get_database():
    """Get database instance"""
    return db.db
