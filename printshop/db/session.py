from printshop.db.mongo import get_db
from printshop.db.store import MongoRecordStore, RecordStore


async def get_store() -> RecordStore:
    """Return a RecordStore over the active database connection."""
    return MongoRecordStore(get_db())
