import numpy as np
import pytest

from bandwidth_rl.models import NetworkState


def make_state(users=(5, 5, 5), demands=(20.0, 20.0, 20.0), sats=(100.0, 100.0, 100.0), total=None):
    return NetworkState(*users, *demands, *sats, total_demand=total)


@pytest.fixture
def state_factory():
    return make_state


@pytest.fixture
def calm_state():
    return make_state()


@pytest.fixture
def overloaded_state():
    # total demand 200 on a 100 Mbps link
    return make_state(users=(5, 10, 20), demands=(40.0, 40.0, 120.0), sats=(45.0, 45.0, 45.0))


@pytest.fixture
def rng():
    return np.random.default_rng(0)
