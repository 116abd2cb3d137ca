from __future__ import annotations

import pytest

from renthub import db


@pytest.mark.anyio
async def test_get_db_connects_lazily_once(monkeypatch):
    monkeypatch.setenv("MONGO_URL", "mongodb://localhost:27017")
    monkeypatch.setenv("DB_NAME", "renthub_lazy_test")
    await db.close_mongo()

    try:
        first = await db.get_db()
        await db.connect_mongo()
        second = await db.get_db()
        assert first is second
        assert first.name == "renthub_lazy_test"
    finally:
        await db.close_mongo()


@pytest.mark.anyio
async def test_close_mongo_resets_client(monkeypatch):
    monkeypatch.setenv("DB_NAME", "renthub_first")
    await db.close_mongo()
    try:
        first = await db.get_db()
        await db.close_mongo()
        monkeypatch.setenv("DB_NAME", "renthub_second")
        second = await db.get_db()
        assert first.name == "renthub_first"
        assert second.name == "renthub_second"
    finally:
        await db.close_mongo()
