import asyncio
import json
import os
from contextlib import asynccontextmanager

from lab_logger import logger


def empty_document() -> dict:
    return {"bookings": []}


class BookingStore:
    """JSON file holding every lab booking.

    The whole document is read on every load and written on every save.
    There is no locking: two overlapping read-modify-write cycles race and
    the later save wins.
    """

    def __init__(self, path: str):
        self.path = path

    async def load(self) -> dict:
        return await asyncio.to_thread(self._read)

    async def save(self, document: dict) -> bool:
        return await asyncio.to_thread(self._write, document)

    @asynccontextmanager
    async def transaction(self):
        """Load the document for one read-modify-write cycle.

        Changes reach the file only through ``commit()``; leaving the block
        without committing discards them.
        """
        txn = StoreTransaction(self, await self.load())
        try:
            yield txn
        finally:
            if not txn.committed and txn.dirty:
                logger.debug(f"Discarding uncommitted changes to {self.path}")

    def _read(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            return empty_document()
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read bookings from {self.path}, starting empty: {e}")
            return empty_document()
        if not isinstance(document, dict):
            logger.warning(f"Bookings file {self.path} is not a JSON object, starting empty")
            return empty_document()
        return document

    def _write(self, document: dict) -> bool:
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            data = json.dumps(document, indent=2, ensure_ascii=False)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(data)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving bookings to {self.path}: {e}")
            return False


class StoreTransaction:
    def __init__(self, store: BookingStore, document: dict):
        self.store = store
        self.document = document
        self.dirty = False
        self.committed = False

    def mark_dirty(self):
        self.dirty = True

    async def commit(self) -> bool:
        saved = await self.store.save(self.document)
        self.committed = saved
        return saved
