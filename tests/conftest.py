import copy

import bson
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError
from pymongo.results import DeleteResult, InsertManyResult, InsertOneResult, UpdateResult

import database
from main import app


class FakeCollection:
    """In-memory stand-in for a pymongo Collection, returning real result objects.

    Writes are BSON-encoded first, as the driver does before sending them.
    """

    def __init__(self):
        self.docs = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise PyMongoError("simulated driver failure")

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(key) == value for key, value in query.items())

    def insert_one(self, doc):
        self._check()
        bson.encode(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return InsertOneResult(doc["_id"], True)

    def insert_many(self, docs, ordered=True):
        self._check()
        ids = []
        for doc in docs:
            bson.encode(doc)
            doc.setdefault("_id", ObjectId())
            self.docs.append(copy.deepcopy(doc))
            ids.append(doc["_id"])
        return InsertManyResult(ids, True)

    def update_one(self, query, update):
        self._check()
        bson.encode(update)
        for doc in self.docs:
            if self._matches(doc, query):
                changes = update["$set"]
                modified = any(doc.get(key) != value for key, value in changes.items())
                doc.update(changes)
                return UpdateResult({"n": 1, "nModified": int(modified)}, True)
        return UpdateResult({"n": 0, "nModified": 0}, True)

    def delete_one(self, query):
        self._check()
        for i, doc in enumerate(self.docs):
            if self._matches(doc, query):
                del self.docs[i]
                return DeleteResult({"n": 1}, True)
        return DeleteResult({"n": 0}, True)

    def find(self, query=None):
        self._check()
        return [copy.deepcopy(doc) for doc in self.docs if self._matches(doc, query or {})]


class FakeDatabase(dict):
    name = "userDB"

    def __missing__(self, key):
        collection = self[key] = FakeCollection()
        return collection


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def client(fake_db):
    app.dependency_overrides[database.get_db] = lambda: fake_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
