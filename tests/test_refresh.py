# tests/test_refresh.py
import asyncio

from catalog_app.core.refresh import RefreshCoordinator


def test_bump_is_strictly_increasing():
    c = RefreshCoordinator()
    seen = [c.generation]
    for _ in range(3):
        seen.append(c.bump())
    assert seen == [0, 1, 2, 3]
    assert c.generation == 3


def test_wait_for_change_returns_immediately_when_already_changed():
    c = RefreshCoordinator(generation=5)
    assert asyncio.run(c.wait_for_change(4)) == 5


def test_wait_for_change_wakes_on_bump():
    async def scenario():
        c = RefreshCoordinator()
        waiter = asyncio.create_task(c.wait_for_change(0))
        await asyncio.sleep(0)
        assert not waiter.done()
        c.bump()
        return await asyncio.wait_for(waiter, timeout=1)

    assert asyncio.run(scenario()) == 1
