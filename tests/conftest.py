import asyncio

import httpx
import pytest

HANG = object()


class ScriptedTransport:
    """
    Stands in for the HTTP transport. Each connection attempt consumes one script:
    strings are appended to the body and reported cumulatively, an exception is raised
    in place, and HANG keeps the request open until it is cancelled. Once the scripts
    run out every further attempt hangs.
    """

    cumulative = True

    def __init__(self, *scripts):
        self.scripts = list(scripts)
        self.calls = 0
        self.cancelled = 0

    async def stream_text(self, url, on_progress):
        self.calls += 1
        script = self.scripts.pop(0) if self.scripts else [HANG]
        received = ""
        try:
            for step in script:
                if step is HANG:
                    await asyncio.Event().wait()
                elif isinstance(step, BaseException):
                    raise step
                else:
                    received += step
                    on_progress(received)
                    await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise


class FailingTransport:
    cumulative = True

    def __init__(self, error_factory=lambda: httpx.ConnectError("connection refused")):
        self.error_factory = error_factory
        self.calls = 0

    async def stream_text(self, url, on_progress):
        self.calls += 1
        await asyncio.sleep(0)
        raise self.error_factory()


async def _wait_until(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def scripted():
    return ScriptedTransport


@pytest.fixture
def failing():
    return FailingTransport


@pytest.fixture
def hang():
    return HANG


@pytest.fixture
def wait_until():
    return _wait_until
