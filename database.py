from pymongo import MongoClient
from pymongo.database import Database
from pymongo.results import DeleteResult, InsertManyResult, InsertOneResult, UpdateResult
from pymongo.server_api import ServerApi
from bson import ObjectId
from datetime import datetime
from urllib.parse import quote_plus
from fastapi import HTTPException
import logging
import os
from dotenv import load_dotenv
from typing import Any, Optional

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger("backend.database")

USER_COLLECTION = "user"
CARD_COLLECTION = "card"
POST_COLLECTION = "post"

DEFAULT_DB_HOST = "cluster0.7g1j2.mongodb.net"

_client: Optional[MongoClient] = None
db: Optional[Database] = None


def database_url() -> str:
    """Resolve the MongoDB URI from the environment.

    DATABASE_URL wins when set; otherwise an Atlas SRV URI is built from
    DB_USER / DB_PASS / DB_HOST.
    """
    url = os.getenv("DATABASE_URL", "").strip()
    if url:
        return url

    user = os.getenv("DB_USER")
    password = os.getenv("DB_PASS")
    if not user or not password:
        raise RuntimeError("Set DATABASE_URL, or DB_USER and DB_PASS, to connect to MongoDB.")

    host = os.getenv("DB_HOST", DEFAULT_DB_HOST)
    return (
        f"mongodb+srv://{quote_plus(user)}:{quote_plus(password)}@{host}/"
        "?retryWrites=true&w=majority&appName=Cluster0"
    )


def database_name() -> str:
    return os.getenv("DATABASE_NAME", "userDB")


def connect() -> Database:
    """Open the shared client and verify it with a ping.

    Returns:
        Database: the bound database handle

    Raises whatever the driver raised if the server cannot be reached.
    """
    global _client, db
    if db is not None:
        return db

    client = MongoClient(
        database_url(),
        server_api=ServerApi("1", strict=True, deprecation_errors=True),
        serverSelectionTimeoutMS=int(os.getenv("DB_TIMEOUT_MS", "10000")),
    )
    try:
        client.admin.command("ping")
    except Exception:
        logger.exception("Failed to connect to MongoDB")
        client.close()
        raise

    _client = client
    db = client[database_name()]
    logger.info("Successfully connected to MongoDB database %s", db.name)
    return db


def close() -> None:
    global _client, db
    if _client is None:
        return
    logger.info("Closing MongoDB client")
    _client.close()
    _client = None
    db = None


def is_connected() -> bool:
    return db is not None


def get_db() -> Database:
    """FastAPI dependency handing the shared database to a route."""
    if db is None:
        raise HTTPException(status_code=503, detail="Database not initialized. Please try again later.")
    return db


def to_json(value: Any) -> Any:
    """Make a document JSON serializable (ObjectId -> hex, datetime -> ISO)."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    return value


def render_result(result: Any) -> dict:
    """Render a pymongo write result the way the driver names its fields."""
    if isinstance(result, InsertOneResult):
        return {
            "acknowledged": result.acknowledged,
            "insertedId": to_json(result.inserted_id),
        }
    if isinstance(result, InsertManyResult):
        return {
            "acknowledged": result.acknowledged,
            "insertedCount": len(result.inserted_ids),
            "insertedIds": {str(i): to_json(_id) for i, _id in enumerate(result.inserted_ids)},
        }
    if isinstance(result, UpdateResult):
        return {
            "acknowledged": result.acknowledged,
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count,
            "upsertedCount": 0 if result.upserted_id is None else 1,
            "upsertedId": to_json(result.upserted_id),
        }
    if isinstance(result, DeleteResult):
        return {
            "acknowledged": result.acknowledged,
            "deletedCount": result.deleted_count,
        }
    raise TypeError(f"Unsupported result type: {type(result).__name__}")
