from pathlib import Path

import pytest

from embedded_mock import MockEngine


RESOURCES = Path(__file__).resolve().parent / "resources"

# Generous: engines start in well under a second, CI machines can be slow.
START_TIMEOUT = 15


@pytest.fixture
def resources() -> Path:
    return RESOURCES


@pytest.fixture
def petstore_spec() -> Path:
    return RESOURCES / "petstore-simple.yaml"


@pytest.fixture
def started():
    """Wait for a StartOutcome and stop the engine after the test."""

    engines: list[MockEngine] = []

    def _wait(outcome) -> MockEngine:
        engine = outcome.result(timeout=START_TIMEOUT)
        engines.append(engine)
        return engine

    yield _wait

    for engine in engines:
        engine.stop()
