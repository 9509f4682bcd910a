import asyncio

from src.services.locks import ReadWriteLock


async def _spin(n: int = 3) -> None:
    for _ in range(n):
        await asyncio.sleep(0)


async def test_readers_share_the_lock():
    lock = ReadWriteLock()
    async with lock.read():
        async with lock.read():
            assert lock.readers == 2
    assert lock.readers == 0


async def test_writer_waits_for_readers():
    lock = ReadWriteLock()
    events = []

    async def writer():
        async with lock.write():
            events.append("write")

    async with lock.read():
        task = asyncio.create_task(writer())
        await _spin()
        assert events == []
        assert not lock.write_locked
    await task
    assert events == ["write"]


async def test_waiting_writer_blocks_new_readers():
    lock = ReadWriteLock()
    events = []

    async def writer():
        async with lock.write():
            events.append("write")

    async def reader():
        async with lock.read():
            events.append("read")

    async with lock.read():
        w = asyncio.create_task(writer())
        await _spin()
        r = asyncio.create_task(reader())
        await _spin()
        assert events == []
    await asyncio.gather(w, r)
    assert events == ["write", "read"]


async def test_writers_are_exclusive():
    lock = ReadWriteLock()
    active = 0
    peak = 0

    async def writer():
        nonlocal active, peak
        async with lock.write():
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0)
            active -= 1

    await asyncio.gather(*(writer() for _ in range(10)))
    assert peak == 1
    assert not lock.write_locked
