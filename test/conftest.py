import pytest

from helpers import LoopbackNetwork, ManualClock


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def network(clock):
    return LoopbackNetwork(clock)
