import asyncio

import pytest

from storepos.exceptions import ProductMissing, StockExhausted
from storepos.services.stock_repository import StockRepository


def test_decrement_inside_transaction(db, stocked):
    repo = StockRepository(db, allow_negative_stock=False)

    async def scenario():
        async with db.transaction() as session:
            new_stock = await repo.decrement(session, "prod-a", 3)
        return new_stock, await repo.get_stock("prod-a")

    new_stock, committed = asyncio.run(scenario())

    assert new_stock == 7
    assert committed == 7


def test_decrement_not_visible_until_commit(db, stocked):
    repo = StockRepository(db, allow_negative_stock=False)

    async def scenario():
        async with db.transaction() as session:
            await repo.decrement(session, "prod-a", 3)
            during = await repo.get_stock("prod-a")
        return during

    assert asyncio.run(scenario()) == 10


def test_missing_product_aborts_whole_commit(db, stocked):
    repo = StockRepository(db, allow_negative_stock=False)

    async def scenario():
        with pytest.raises(ProductMissing):
            async with db.transaction() as session:
                await repo.decrement(session, "prod-a", 3)
                await repo.decrement(session, "gone", 1)
        return await repo.get_stock("prod-a")

    assert asyncio.run(scenario()) == 10


def test_rejects_going_negative(db, stocked):
    repo = StockRepository(db, allow_negative_stock=False)

    async def scenario():
        with pytest.raises(StockExhausted) as exc_info:
            async with db.transaction() as session:
                await repo.decrement(session, "prod-b", 2)
        return exc_info.value, await repo.get_stock("prod-b")

    error, stock = asyncio.run(scenario())

    assert (error.current, error.requested) == (1, 2)
    assert stock == 1


def test_oversell_allowed_when_configured(db, stocked):
    repo = StockRepository(db, allow_negative_stock=True)

    async def scenario():
        async with db.transaction() as session:
            await repo.decrement(session, "prod-b", 3)
        return await repo.get_stock("prod-b")

    assert asyncio.run(scenario()) == -2


def test_get_stock_unknown_product(db):
    assert asyncio.run(StockRepository(db).get_stock("nope")) is None
