"""Integration tests for the repository functions."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from cellar_ai.db.models import Wine
from cellar_ai.db.queries import (
    create_guest_user,
    get_cellar_data,
    get_cellar_stats,
    get_cellartracker_credentials,
    get_user,
    get_wine_by_iwine,
    has_valid_cellartracker_setup,
    save_cellar_data,
    save_cellartracker_credentials,
)
from tests.fixtures.cellar_data import sample_inventory_rows, wine_row


class TestUsers:
    @pytest.mark.asyncio
    async def test_create_guest_user(self, db_session):
        user = await create_guest_user(db_session)

        assert user.is_guest is True
        assert user.email.startswith("guest-")
        assert (await get_user(db_session, user.id)) is user


class TestCredentials:
    @pytest.mark.asyncio
    async def test_save_then_update(self, db_session, owner_id):
        await save_cellartracker_credentials(db_session, owner_id, "alice", "one")
        await save_cellartracker_credentials(db_session, owner_id, "alice2", "two")

        credentials = await get_cellartracker_credentials(db_session, owner_id)
        assert credentials.username == "alice2"
        assert credentials.password == "two"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, db_session, owner_id):
        assert await get_cellartracker_credentials(db_session, owner_id) is None


class TestCellarData:
    @pytest.mark.asyncio
    async def test_fresh_import_is_returned(self, db_session, owner_id):
        wines = await get_cellar_data(db_session, owner_id, hours_old=24)

        assert len(wines) == 6
        assert {wine.i_wine for wine in wines} == {"1001", "1002", "1003", "1004", "1005", "1006"}

    @pytest.mark.asyncio
    async def test_stale_import_is_ignored(self, db_session, owner_id):
        stale = datetime.now(timezone.utc) - timedelta(hours=48)
        await db_session.execute(update(Wine).where(Wine.user_id == owner_id).values(fetched_at=stale))

        assert await get_cellar_data(db_session, owner_id, hours_old=24) == []

    @pytest.mark.asyncio
    async def test_save_replaces_previous_import(self, db_session, owner_id):
        count = await save_cellar_data(db_session, owner_id, [wine_row(iWine="2001")], batch_size=1)

        wines = await get_cellar_data(db_session, owner_id)
        assert count == 1
        assert [wine.i_wine for wine in wines] == ["2001"]

    @pytest.mark.asyncio
    async def test_batches_share_one_timestamp(self, db_session, empty_owner_id):
        await save_cellar_data(db_session, empty_owner_id, sample_inventory_rows(), batch_size=4)

        wines = await get_cellar_data(db_session, empty_owner_id)
        assert len(wines) == 6
        assert len({wine.fetched_at for wine in wines}) == 1

    @pytest.mark.asyncio
    async def test_values_stored_as_text(self, db_session, owner_id):
        wine = await get_wine_by_iwine(db_session, owner_id, "1005")

        assert wine.valuation == ""
        assert wine.price == "180"
        assert wine.to_dict()["masterVarietal"] == "Champagne Blend"

    @pytest.mark.asyncio
    async def test_wine_lookup_is_owner_scoped(self, db_session, owner_id, other_owner_id):
        assert await get_wine_by_iwine(db_session, owner_id, "91001") is None
        assert (await get_wine_by_iwine(db_session, other_owner_id, "91001")).producer == "Intruder Estate"


class TestSetupStatus:
    @pytest.mark.asyncio
    async def test_requires_credentials(self, db_session, owner_id):
        assert await has_valid_cellartracker_setup(db_session, owner_id) is False

        await save_cellartracker_credentials(db_session, owner_id, "alice", "secret")

        assert await has_valid_cellartracker_setup(db_session, owner_id) is True

    @pytest.mark.asyncio
    async def test_requires_inventory(self, db_session, empty_owner_id):
        await save_cellartracker_credentials(db_session, empty_owner_id, "alice", "secret")

        assert await has_valid_cellartracker_setup(db_session, empty_owner_id) is False

    @pytest.mark.asyncio
    async def test_stats(self, db_session, owner_id):
        stats = await get_cellar_stats(db_session, owner_id)

        assert stats["totalWines"] == 6
        assert stats["hasCredentials"] is False
        assert stats["isFresh"] is True
        assert stats["lastUpdated"] is not None

    @pytest.mark.asyncio
    async def test_stats_for_empty_cellar(self, db_session, empty_owner_id):
        stats = await get_cellar_stats(db_session, empty_owner_id)

        assert stats == {"totalWines": 0, "lastUpdated": None, "hasCredentials": False, "isFresh": False}
