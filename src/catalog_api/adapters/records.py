"""
MongoDB record store for item documents.

One collection per category. The store owns a single `MongoClient` (and its
connection pool) for the lifetime of the process.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import CollectionInvalid, PyMongoError

from catalog_api.config.settings import Settings
from catalog_api.errors import DatabaseError
from catalog_api.schemas import COLLECTION_NAMES, Category
from catalog_api.utils.decorators import log_execution_time

logger = logging.getLogger(__name__)


def serialize_doc(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a Mongo document to a JSON-safe dict."""
    doc = dict(doc)
    for key, value in list(doc.items()):
        if isinstance(value, ObjectId):
            doc[key] = str(value)
    return doc


class MongoRecordStore:
    """Insert, delete and list item documents by category."""

    def __init__(self, database: Database, client: Optional[MongoClient] = None):
        self.db = database
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoRecordStore":
        """Create a store with its own client. The client connects lazily."""
        client = MongoClient(settings.mongodb_connection_string)
        logger.info(f"MongoDB client created for database: {settings.database_name}")
        return cls(client[settings.database_name], client=client)

    def _collection(self, category: Union[Category, str]):
        return self.db[Category.parse(category).value]

    def init_collections(self) -> List[str]:
        """Create any of the provisioned collections that do not exist yet."""
        try:
            existing = set(self.db.list_collection_names())
            created = []
            for name in COLLECTION_NAMES:
                if name in existing:
                    continue
                try:
                    self.db.create_collection(name)
                except CollectionInvalid:
                    # created concurrently
                    continue
                created.append(name)
            logger.info(f"Collections initialized, created: {created or 'none'}")
            return created
        except PyMongoError as e:
            logger.error(f"Error initializing MongoDB collections: {e}")
            raise DatabaseError("Could not initialize database collections") from e

    @log_execution_time
    def insert(self, category: Union[Category, str], document: Dict[str, Any]) -> str:
        """Insert one document and return its id as a hex string."""
        collection = self._collection(category)
        # insert_one adds `_id` to the mapping it is given
        document = dict(document)
        try:
            result = collection.insert_one(document)
        except PyMongoError as e:
            logger.error(f"Error inserting document into {collection.name}: {e}")
            raise DatabaseError("Error in uploading item to database") from e

        logger.info(f"Inserted document into {collection.name} with ID: {result.inserted_id}")
        return str(result.inserted_id)

    @log_execution_time
    def delete_by_id(self, category: Union[Category, str], item_id: str) -> int:
        """Delete one document by id and return the number deleted (0 or 1)."""
        collection = self._collection(category)
        # ObjectId(None) would mint a fresh id instead of failing
        if not ObjectId.is_valid(item_id):
            raise DatabaseError(f"Malformed item id: {item_id}")
        object_id = ObjectId(item_id)

        try:
            result = collection.delete_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Error deleting document {item_id} from {collection.name}: {e}")
            raise DatabaseError("Error deleting item from database") from e

        if result.deleted_count:
            logger.info(f"Deleted document from {collection.name} with ID: {item_id}")
        else:
            logger.warning(f"No document found to delete in {collection.name} with ID: {item_id}")
        return result.deleted_count

    @log_execution_time
    def find_all(self, category: Union[Category, str]) -> List[Dict[str, Any]]:
        """Every document in the category's collection, in natural order."""
        collection = self._collection(category)
        try:
            return [serialize_doc(doc) for doc in collection.find({})]
        except PyMongoError as e:
            logger.error(f"Error reading documents from {collection.name}: {e}")
            raise DatabaseError("Error reading items from database") from e

    def ping(self) -> bool:
        """Round-trip to the server; raises `DatabaseError` if it is unreachable."""
        try:
            self.db.command("ping")
        except PyMongoError as e:
            raise DatabaseError(f"Database unreachable: {e}") from e
        return True

    def close(self) -> None:
        """Close the MongoDB client if this store created it."""
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed")
