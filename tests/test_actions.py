import pytest

from bandwidth_rl.actions import BALANCED_PROTECTIVE, ActionCatalog


@pytest.fixture
def catalog():
    return ActionCatalog.balanced()


def test_catalog_sizes():
    assert len(ActionCatalog.balanced()) == 19
    assert len(ActionCatalog.video_priority()) == 20


def test_every_allocation_sums_to_one(catalog):
    for action in catalog.allocations():
        assert sum(action.ratios) == pytest.approx(1.0)


def test_matrix_is_read_only(catalog):
    with pytest.raises(ValueError):
        catalog.matrix[0, 0] = 1.0


def test_getitem_clamps(catalog):
    assert catalog[100] == catalog[18]
    assert catalog[-5] == catalog[0]


def test_describe(catalog):
    assert catalog.describe(1) == "Web=40%, Audio=30%, Video=30%"


def test_nearest_index_exact_match(catalog):
    assert catalog.nearest_index(catalog[7]) == 7
    assert catalog.nearest_index((0.40, 0.40, 0.20)) == 18


def test_nearest_index_tie_goes_to_first():
    catalog = ActionCatalog([(0.5, 0.5, 0.0), (0.0, 0.5, 0.5)], protective=(0,))
    assert catalog.nearest_index((0.25, 0.5, 0.25)) == 0


def test_nearest_index_duplicate_entries():
    catalog = ActionCatalog.video_priority()
    # entries 6 and 8 are the same split
    assert catalog.nearest_index(catalog[8]) == 6


def test_out_of_range_subset_rejected():
    with pytest.raises(ValueError):
        ActionCatalog([(1, 1, 1)], protective=(3,))


def test_calm_network_allows_everything(catalog, calm_state):
    assert catalog.valid_indices(calm_state) == set(range(len(catalog)))


def test_severe_congestion_caps_video(catalog, overloaded_state):
    valid = catalog.valid_indices(overloaded_state)
    assert valid
    assert all(catalog.matrix[i, 2] <= 0.40 + 1e-9 for i in valid)
    assert 8 not in valid  # (0.25, 0.25, 0.50)


def test_moderate_congestion_caps_video(catalog, state_factory):
    state = state_factory(demands=(40.0, 40.0, 40.0), sats=(80.0, 80.0, 80.0))
    valid = catalog.valid_indices(state)
    assert all(catalog.matrix[i, 2] <= 0.45 + 1e-9 for i in valid)
    assert 9 in valid  # (0.30, 0.25, 0.45)
    assert 8 not in valid


def test_acute_starvation_restricts_to_protective(catalog, state_factory):
    state = state_factory(demands=(10.0, 10.0, 10.0), sats=(10.0, 20.0, 90.0))
    assert catalog.valid_indices(state) == set(BALANCED_PROTECTIVE)


def test_single_class_starving_is_not_acute(catalog, state_factory):
    state = state_factory(demands=(10.0, 10.0, 10.0), sats=(10.0, 90.0, 90.0))
    assert catalog.valid_indices(state) == set(range(len(catalog)))


def test_idle_classes_do_not_count_as_starving(catalog, state_factory):
    state = state_factory(users=(5, 0, 0), demands=(10.0, 0.0, 0.0), sats=(10.0, 0.0, 0.0))
    assert catalog.valid_indices(state) == set(range(len(catalog)))


def test_rule_that_empties_the_set_is_skipped(overloaded_state):
    catalog = ActionCatalog(
        [(0.0, 0.0, 1.0), (0.05, 0.0, 0.95), (0.2, 0.3, 0.5)],
        protective=(2,),
    )
    # the video cap would remove everything; the share limit still applies
    assert catalog.valid_indices(overloaded_state) == {2}


def test_never_empty_when_every_rule_fails(overloaded_state):
    catalog = ActionCatalog([(0.0, 0.0, 1.0)], protective=(0,))
    assert catalog.valid_indices(overloaded_state) == {0}
