"""
RecordStore - the only shared mutable resource the ledger talks to.

Contract:
- get(collection, filter) -> list of records (equality filter; a list value means "one of")
- get_one(collection, id) -> record or None
- insert / insert_many -> the written records
- update(collection, id, fields, expected_version=None) -> None
  When expected_version is given the write only applies if the stored
  record still carries that version (ConcurrencyConflict otherwise).
- delete(collection, id | [ids]) -> number of deleted records

Every driver failure surfaces as StoreError. Nothing is retried here.
"""

import copy
from typing import Any, Dict, List, Optional, Protocol, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from printshop.core.errors import ConcurrencyConflict, NotFoundError, StoreError
from printshop.core.logging import get_logger

logger = get_logger(__name__)

Record = Dict[str, Any]
IdOrIds = Union[str, List[str]]


class RecordStore(Protocol):
    async def get(self, collection: str, filter: Optional[Record] = None) -> List[Record]: ...

    async def get_one(self, collection: str, record_id: str) -> Optional[Record]: ...

    async def insert(self, collection: str, record: Record) -> Record: ...

    async def insert_many(self, collection: str, records: List[Record]) -> List[Record]: ...

    async def update(
        self,
        collection: str,
        record_id: str,
        fields: Record,
        expected_version: Optional[int] = None
    ) -> None: ...

    async def delete(self, collection: str, ids: IdOrIds) -> int: ...


def _as_id_list(ids: IdOrIds) -> List[str]:
    return [ids] if isinstance(ids, str) else list(ids)


def _to_query(filter: Optional[Record]) -> Record:
    query: Record = {}
    for key, value in (filter or {}).items():
        if isinstance(value, (list, tuple, set)):
            query[key] = {"$in": list(value)}
        else:
            query[key] = value
    return query


class MongoRecordStore:
    """RecordStore backed by a motor database."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def get(self, collection: str, filter: Optional[Record] = None) -> List[Record]:
        try:
            return await self.db[collection].find(_to_query(filter)).to_list(None)
        except PyMongoError as exc:
            raise StoreError(f"Could not read {collection}: {exc}") from exc

    async def get_one(self, collection: str, record_id: str) -> Optional[Record]:
        try:
            return await self.db[collection].find_one({"_id": record_id})
        except PyMongoError as exc:
            raise StoreError(f"Could not read {collection}/{record_id}: {exc}") from exc

    async def insert(self, collection: str, record: Record) -> Record:
        try:
            await self.db[collection].insert_one(record)
        except PyMongoError as exc:
            raise StoreError(f"Could not insert into {collection}: {exc}") from exc
        return record

    async def insert_many(self, collection: str, records: List[Record]) -> List[Record]:
        if not records:
            return []
        try:
            await self.db[collection].insert_many(records, ordered=True)
        except PyMongoError as exc:
            raise StoreError(f"Could not insert into {collection}: {exc}") from exc
        return records

    async def update(
        self,
        collection: str,
        record_id: str,
        fields: Record,
        expected_version: Optional[int] = None
    ) -> None:
        query: Record = {"_id": record_id}
        if expected_version is not None:
            query["version"] = expected_version
        try:
            result = await self.db[collection].update_one(query, {"$set": fields})
            if result.matched_count:
                return
            exists = await self.db[collection].find_one({"_id": record_id}, {"_id": 1})
        except PyMongoError as exc:
            raise StoreError(f"Could not update {collection}/{record_id}: {exc}") from exc

        if exists is None:
            raise NotFoundError(f"{collection}/{record_id} not found")
        raise ConcurrencyConflict(
            f"{collection}/{record_id} changed since version {expected_version}"
        )

    async def delete(self, collection: str, ids: IdOrIds) -> int:
        try:
            result = await self.db[collection].delete_many({"_id": {"$in": _as_id_list(ids)}})
        except PyMongoError as exc:
            raise StoreError(f"Could not delete from {collection}: {exc}") from exc
        return result.deleted_count


class InMemoryRecordStore:
    """
    RecordStore kept in process: an arena of records keyed by collection and id.

    Records are deep-copied on the way in and out so callers never share
    state with the arena. snapshot()/restore() capture and roll back the
    whole arena.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Record]] = {}

    def _table(self, collection: str) -> Dict[str, Record]:
        return self._collections.setdefault(collection, {})

    def snapshot(self) -> Dict[str, Dict[str, Record]]:
        return copy.deepcopy(self._collections)

    def restore(self, snapshot: Dict[str, Dict[str, Record]]) -> None:
        self._collections = copy.deepcopy(snapshot)

    async def get(self, collection: str, filter: Optional[Record] = None) -> List[Record]:
        query = _to_query(filter)
        matches = []
        for record in self._table(collection).values():
            if all(self._matches(record.get(key), cond) for key, cond in query.items()):
                matches.append(copy.deepcopy(record))
        return matches

    @staticmethod
    def _matches(value: Any, cond: Any) -> bool:
        if isinstance(cond, dict) and "$in" in cond:
            return value in cond["$in"]
        return value == cond

    async def get_one(self, collection: str, record_id: str) -> Optional[Record]:
        record = self._table(collection).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def insert(self, collection: str, record: Record) -> Record:
        table = self._table(collection)
        if record["_id"] in table:
            raise StoreError(f"Duplicate id {record['_id']} in {collection}")
        table[record["_id"]] = copy.deepcopy(record)
        return record

    async def insert_many(self, collection: str, records: List[Record]) -> List[Record]:
        for record in records:
            await self.insert(collection, record)
        return records

    async def update(
        self,
        collection: str,
        record_id: str,
        fields: Record,
        expected_version: Optional[int] = None
    ) -> None:
        record = self._table(collection).get(record_id)
        if record is None:
            raise NotFoundError(f"{collection}/{record_id} not found")
        if expected_version is not None and record.get("version") != expected_version:
            raise ConcurrencyConflict(
                f"{collection}/{record_id} changed since version {expected_version}"
            )
        record.update(copy.deepcopy(fields))

    async def delete(self, collection: str, ids: IdOrIds) -> int:
        table = self._table(collection)
        deleted = 0
        for record_id in _as_id_list(ids):
            if table.pop(record_id, None) is not None:
                deleted += 1
        return deleted
