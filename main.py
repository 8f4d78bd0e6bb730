import os
import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, Any, List

from bson import ObjectId
from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
from database import CARD_COLLECTION, POST_COLLECTION, USER_COLLECTION, get_db, render_result, to_json
from logging_config import setup_logging
from schemas import DeleteUser, UpdateItem, UpdateName

logger = setup_logging()

DEFAULT_DATAS_PATH = Path(__file__).resolve().parent / "datas.json"

# 400 messages for routes whose body must carry specific fields
# Only used when every error is an absent or empty field.
VALIDATION_MESSAGES = {
    "/update-name": "Email and name are required",
    "/delete-user": "Email is required to delete a user",
    "/updateitem": "A valid _id is required",
}
FIELD_ERRORS = {"missing", "string_too_short"}


@asynccontextmanager
async def lifespan(_: FastAPI):
    # A failed connect propagates and aborts startup.
    database.connect()
    logger.info("Collections initialized. Server is ready")
    try:
        yield
    finally:
        database.close()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    message = "Invalid request body"
    if all(error["type"] in FIELD_ERRORS for error in exc.errors()):
        message = VALIDATION_MESSAGES.get(request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


def load_seed_cards() -> List[Dict[str, Any]]:
    """Read the card seed list. Read on every call since insert_many adds _id in place."""
    path = Path(os.getenv("DATAS_PATH") or DEFAULT_DATAS_PATH)
    with open(path, "r", encoding="utf-8") as f:
        cards = json.load(f)
    if not isinstance(cards, list):
        raise ValueError(f"{path} must hold a JSON array of cards")
    return cards


@app.get("/")
def read_root():
    """Simple liveness message"""
    return {"message": "Hello World!"}


@app.get("/health")
def health():
    """Ping the shared database and report whether it is reachable"""
    db = database.db
    if db is None:
        raise HTTPException(status_code=503, detail="Database not connected")
    try:
        db.client.admin.command("ping")
    except Exception:
        logger.exception("Health check ping failed")
        raise HTTPException(status_code=503, detail="Database not reachable")
    return {"status": "ok", "database": "connected"}


@app.post("/user")
def add_user(user: Dict[str, Any] = Body(...), db: Database = Depends(get_db)):
    """Insert the request body into the user collection"""
    try:
        result = db[USER_COLLECTION].insert_one(user)
    except Exception:
        logger.exception("Error inserting user")
        raise HTTPException(status_code=500, detail="Failed to insert user")
    return render_result(result)


@app.post("/update-name")
def update_name(body: UpdateName, db: Database = Depends(get_db)):
    """Set the name of the user matched by email"""
    try:
        result = db[USER_COLLECTION].update_one({"email": body.email}, {"$set": {"name": body.name}})
    except Exception:
        logger.exception("Error updating name in MongoDB")
        raise HTTPException(status_code=500, detail="Failed to update name")

    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="User not found")

    return {"success": True, "message": "Name updated in MongoDB"}


@app.delete("/delete-user")
def delete_user(body: DeleteUser, db: Database = Depends(get_db)):
    """Delete the user matched by email"""
    try:
        result = db[USER_COLLECTION].delete_one({"email": body.email})
    except Exception:
        logger.exception("Error deleting user")
        raise HTTPException(status_code=500, detail="Failed to delete user")

    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="User not found")

    return {"success": True, "message": "User deleted successfully"}


@app.get("/datas")
def insert_datas(db: Database = Depends(get_db)):
    """Seed the card collection from the bundled card list."""
    try:
        cards = load_seed_cards()
    except (OSError, ValueError):
        logger.exception("Error reading card seed file")
        raise HTTPException(status_code=500, detail="Failed to insert datas")

    try:
        result = db[CARD_COLLECTION].insert_many(cards, ordered=True)
    except Exception:
        logger.exception("Error inserting datas")
        raise HTTPException(status_code=500, detail="Failed to insert datas")

    logger.info("Inserted %d cards", len(result.inserted_ids))
    return render_result(result)


@app.post("/insertion")
def insert_post(post: Dict[str, Any] = Body(...), db: Database = Depends(get_db)):
    """Insert the request body into the post collection"""
    try:
        result = db[POST_COLLECTION].insert_one(post)
    except Exception:
        logger.exception("Error inserting data into posts")
        raise HTTPException(status_code=500, detail="Failed to insert data")
    return render_result(result)


@app.get("/userposts")
def get_posts(db: Database = Depends(get_db)):
    """Return every post"""
    try:
        posts = list(db[POST_COLLECTION].find({}))
    except Exception:
        logger.exception("Error fetching posts")
        raise HTTPException(status_code=500, detail="Failed to fetch posts")
    return to_json(posts)


@app.get("/cards")
def get_cards(db: Database = Depends(get_db)):
    """Return every card"""
    try:
        cards = list(db[CARD_COLLECTION].find({}))
    except Exception:
        logger.exception("Error fetching cards")
        raise HTTPException(status_code=500, detail="Failed to fetch cards")
    return to_json(cards)


@app.put("/updateitem")
def update_item(body: UpdateItem, db: Database = Depends(get_db)):
    """
    Update a post item by _id.
    Only the item fields present in the body are $set.
    """
    if not ObjectId.is_valid(body.id):
        raise HTTPException(status_code=400, detail="A valid _id is required")
    changes = body.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No item fields to update")

    try:
        result = db[POST_COLLECTION].update_one({"_id": ObjectId(body.id)}, {"$set": changes})
    except Exception:
        logger.exception("Error updating item")
        raise HTTPException(status_code=500, detail="Failed to update item")

    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Item not found")

    return render_result(result)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 5000))
    uvicorn.run(app, host="0.0.0.0", port=port)
