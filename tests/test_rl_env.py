import pytest

from bandwidth_rl.models import Action
from bandwidth_rl.rl_env import BandwidthEnv, UserPattern, proportional_allocation


def test_pattern_cycles():
    pattern = UserPattern.scripted([(1, 2, 3), (4, 5, 6)])
    assert pattern.users_at(0) == (1, 2, 3)
    assert pattern.users_at(3) == (4, 5, 6)
    assert UserPattern.constant(1, 1, 1).users_at(99) == (1, 1, 1)


@pytest.mark.parametrize("schedule", [[], [(1, 2)], [(1, -2, 3)]])
def test_invalid_pattern(schedule):
    with pytest.raises(ValueError):
        UserPattern.scripted(schedule)


def test_state_for_demands():
    env = BandwidthEnv(UserPattern.constant(1, 1, 1))
    state = env.state_for((10, 20, 5))
    assert state.demands == (20.0, 20.0, 30.0)
    assert state.total_demand == 70.0


def test_apply_satisfaction():
    env = BandwidthEnv(UserPattern.constant(1, 1, 1))
    state = env.state_for((10, 0, 5))
    outcome = env.apply(state, Action(0.2, 0.3, 0.5))
    # 20 of 20, idle class, 50 of 30
    assert outcome.satisfactions == pytest.approx((100.0, 100.0, 500.0 / 3.0))
    assert outcome.users == state.users


def test_proportional_allocation(state_factory):
    congested = state_factory(demands=(50.0, 50.0, 100.0))
    assert proportional_allocation(congested, 100.0).ratios == pytest.approx((0.25, 0.25, 0.5))
    light = state_factory(demands=(10.0, 10.0, 20.0))
    assert proportional_allocation(light, 100.0).allocate(100.0) == pytest.approx((25.0, 25.0, 50.0))
    idle = state_factory(users=(0, 0, 0), demands=(0.0, 0.0, 0.0))
    assert proportional_allocation(idle, 100.0).ratios == pytest.approx((1 / 3, 1 / 3, 1 / 3))


def test_reset_and_step():
    env = BandwidthEnv(UserPattern.scripted([(10, 10, 5), (20, 10, 5)]))
    with pytest.raises(RuntimeError):
        env.step(Action(1, 1, 1))

    first = env.reset()
    assert first.users == (10, 10, 5)
    # 60 Mbps of demand fits, proportional baseline satisfies everyone
    assert first.min_satisfaction >= 100.0 - 1e-9

    outcome, following = env.step(Action(0.5, 0.25, 0.25))
    assert outcome.users == (10, 10, 5)
    assert outcome.video_sat == pytest.approx(25.0 / 30.0 * 100.0)
    assert following.users == (20, 10, 5)
    assert following.satisfactions == outcome.satisfactions
    assert env.tick == 1


def test_rejects_bad_capacity():
    with pytest.raises(ValueError):
        BandwidthEnv(UserPattern.constant(1, 1, 1), capacity=0.0)
