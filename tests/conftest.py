from typing import Generator

import pytest
from fastapi.testclient import TestClient


class ScriptedRng:
    """Random source with a fixed answer: picks `seq[pick]` and rolls `roll`.

    With the default pick=-1 a spawn lands in the last empty cell in row-major order.
    """

    def __init__(self, roll: float = 0.5, pick: int = -1) -> None:
        self.roll = roll
        self.pick = pick
        self.calls = 0

    def choice(self, seq):
        self.calls += 1
        return seq[self.pick]

    def random(self) -> float:
        self.calls += 1
        return self.roll


@pytest.fixture()
def rng() -> ScriptedRng:
    return ScriptedRng()


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    import api

    api.store.clear()
    api.limiter.reset()
    with TestClient(api.app) as c:
        yield c
    api.store.clear()
