import json

import pytest

from lab_logger import logger
from lab_store import BookingStore, empty_document


@pytest.mark.asyncio
async def test_load_missing_file_returns_empty_store(tmp_path):
    path = tmp_path / "data" / "lab_bookings.json"
    store = BookingStore(str(path))

    document = await store.load()

    assert document == {"bookings": []}
    assert not path.exists(), "Loading must not create the bookings file"


@pytest.mark.asyncio
async def test_load_corrupt_file_returns_empty_store(tmp_path):
    path = tmp_path / "lab_bookings.json"
    path.write_text("{not json", encoding="utf-8")

    document = await BookingStore(str(path)).load()

    assert document == empty_document()


@pytest.mark.asyncio
async def test_load_non_object_json_returns_empty_store(tmp_path):
    path = tmp_path / "lab_bookings.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    assert await BookingStore(str(path)).load() == {"bookings": []}


@pytest.mark.asyncio
async def test_save_creates_directory_and_pretty_prints(tmp_path):
    path = tmp_path / "nested" / "data" / "lab_bookings.json"
    store = BookingStore(str(path))
    document = {"bookings": [{"id": "LAB123456", "customerName": "Zoë"}]}

    assert await store.save(document) is True

    text = path.read_text(encoding="utf-8")
    assert text == json.dumps(document, indent=2, ensure_ascii=False)
    assert '\n  "bookings"' in text
    assert await store.load() == document


@pytest.mark.asyncio
async def test_save_failure_returns_false_and_logs(tmp_path):
    # A regular file where the data directory should be
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    store = BookingStore(str(blocker / "lab_bookings.json"))

    messages = []
    handler_id = logger.add(messages.append, level="ERROR")
    try:
        saved = await store.save({"bookings": []})
    finally:
        logger.remove(handler_id)

    assert saved is False
    assert any("Error saving bookings" in m for m in messages)


@pytest.mark.asyncio
async def test_transaction_commit_writes_document(tmp_path):
    path = tmp_path / "lab_bookings.json"
    store = BookingStore(str(path))

    async with store.transaction() as txn:
        txn.document["bookings"].append({"id": "LAB000001"})
        txn.mark_dirty()
        assert await txn.commit() is True

    assert json.loads(path.read_text(encoding="utf-8")) == {"bookings": [{"id": "LAB000001"}]}


@pytest.mark.asyncio
async def test_transaction_without_commit_discards_changes(tmp_path):
    path = tmp_path / "lab_bookings.json"
    store = BookingStore(str(path))
    await store.save({"bookings": []})
    before = path.read_bytes()

    async with store.transaction() as txn:
        txn.document["bookings"].append({"id": "LAB000001"})
        txn.mark_dirty()

    assert path.read_bytes() == before
    assert await store.load() == {"bookings": []}


@pytest.mark.asyncio
async def test_overlapping_transactions_last_writer_wins(tmp_path):
    store = BookingStore(str(tmp_path / "lab_bookings.json"))

    async with store.transaction() as first:
        async with store.transaction() as second:
            first.document["bookings"].append({"id": "LAB000001"})
            second.document["bookings"].append({"id": "LAB000002"})
            await first.commit()
            await second.commit()

    assert await store.load() == {"bookings": [{"id": "LAB000002"}]}
