from concurrent.futures import Executor, Future

import pytest
import requests

from sage_desk.dispatch import BackgroundRunner
from sage_desk.storage import MemoryStore


def make_response(body: bytes, status: int = 200) -> requests.Response:
    """Build a real Response without touching the network."""
    resp = requests.Response()
    resp.status_code = status
    resp._content = body
    resp.encoding = "utf-8"
    return resp


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


class DeferredExecutor(Executor):
    """Holds submitted work until the test releases it."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def release(self, index: int = 0):
        future, fn, args, kwargs = self.pending.pop(index)
        future.set_result(fn(*args, **kwargs))
        return future


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def inline_runner():
    return BackgroundRunner(executor=InlineExecutor())
