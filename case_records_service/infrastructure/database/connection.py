from case_records_service.app.config import settings
import logging
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from typing import Optional

logger = logging.getLogger(__name__)

# Global client and db variables, managed by connect/close functions
client: Optional[MongoClient] = None
db: Optional[Database] = None

def connect_to_mongo():
    global client, db
    if client is not None and db is not None:
        logger.info("MongoDB connection already established.")
        return

    try:
        logger.info(f"Attempting to connect to MongoDB at {settings.MONGO_DETAILS}...")
        client = MongoClient(settings.MONGO_DETAILS)
        # Verify connection by pinging the admin database
        client.admin.command('ping')
        db = client[settings.DB_NAME]
        logger.info(f"Successfully connected to MongoDB and database '{settings.DB_NAME}' is set.")
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB: {e}", exc_info=True)
        client = None
        db = None
        raise ConnectionError(f"Failed to connect to MongoDB: {e}")

def close_mongo_connection():
    global client, db
    if client:
        client.close()
        client = None
        db = None
        logger.info("MongoDB connection closed.")

def get_database() -> Database:
    if db is None:
        logger.warning("Database not initialized. Attempting to connect via get_database().")
        connect_to_mongo()
    return db

def get_records_collection() -> Collection:
    """Collection holding one document per record key of the local record store."""
    return get_database()[settings.RECORDS_COLLECTION]
