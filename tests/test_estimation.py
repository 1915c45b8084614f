import numpy as np
import pandas as pd
import pytest

from bumblebee.core.estimation import (
    get_c_hat,
    get_p_hat,
    get_prob_group_pairing_and_linked,
    get_theta_hat,
)
from bumblebee.core.pairings import prepare_input_for_get_p_hat
from bumblebee.exceptions import ValidationError


@pytest.fixture
def counts(two_groups):
    return prepare_input_for_get_p_hat(*two_groups)


def test_p_hat_two_groups(counts):
    out = get_p_hat(counts)
    assert np.allclose(out["p_hat"], [5 / 45, 8 / 100, 2 / 100, 3 / 45])
    # input is not modified
    assert "p_hat" not in counts.columns


def test_p_hat_undefined_without_possible_pairs(three_groups_singleton):
    out = get_p_hat(prepare_input_for_get_p_hat(*three_groups_singleton))
    cc = (out["H1_group"] == "C") & (out["H2_group"] == "C")
    assert out.loc[cc, "p_hat"].isna().all()
    assert out.loc[~cc, "p_hat"].notna().all()
    ca = (out["H1_group"] == "C") & (out["H2_group"] == "A")
    assert out.loc[ca, "p_hat"].iloc[0] == pytest.approx(1 / 12)


def test_p_hat_above_one_warns(counts):
    counts = counts.copy()
    counts.loc[0, "num_linked_pairs_observed"] = 50
    with pytest.warns(RuntimeWarning, match="p_hat > 1"):
        out = get_p_hat(counts)
    assert out.loc[0, "p_hat"] > 1.0


def test_p_hat_requires_columns():
    with pytest.raises(ValidationError, match="missing column"):
        get_p_hat(pd.DataFrame({"num_linked_pairs_observed": [1]}))


def test_theta_hat_two_groups(counts):
    out = get_theta_hat(get_p_hat(counts))
    assert np.allclose(out["est_linkedpairs_in_population"], [550.0, 800.0, 200.0, 330.0])
    expected = np.array([550.0, 800.0, 200.0, 330.0]) / 1880.0
    assert np.allclose(out["theta_hat"], expected)
    assert np.allclose(out["theta_hat"], [0.292553, 0.425532, 0.106383, 0.175532], atol=1e-6)
    assert out["theta_hat"].sum() == pytest.approx(1.0, abs=1e-12)


def test_theta_hat_sums_to_one_over_defined_pairings(three_groups_singleton):
    out = get_theta_hat(get_p_hat(prepare_input_for_get_p_hat(*three_groups_singleton)))
    theta = out["theta_hat"]
    assert theta.isna().sum() == 1
    assert np.nansum(theta) == pytest.approx(1.0, abs=1e-12)
    assert (theta.dropna() >= 0).all()


def test_theta_hat_all_zero_links_raises(two_groups):
    groups, sampled, population, _ = two_groups
    empty = pd.DataFrame({"H1_group": [], "H2_group": [], "num_linked_pairs_observed": []})
    counts = prepare_input_for_get_p_hat(groups, sampled, population, empty)
    with pytest.raises(ValidationError, match="theta_hat is undefined"):
        get_theta_hat(get_p_hat(counts))


def test_theta_hat_independent_of_global_population_scale(two_groups):
    groups, sampled, population, linkage = two_groups
    base = get_theta_hat(get_p_hat(prepare_input_for_get_p_hat(groups, sampled, population, linkage)))
    # Cross pairings scale by s^2 and self-pairings by nearly s^2: close but not identical.
    scaled = get_theta_hat(
        get_p_hat(prepare_input_for_get_p_hat(groups, sampled, [p * 10 for p in population], linkage)),
    )
    assert np.allclose(base["theta_hat"], scaled["theta_hat"], atol=5e-3)


def test_prob_group_pairing_and_linked(counts):
    df = get_p_hat(counts)
    out = get_prob_group_pairing_and_linked(df, [100, 100])
    total_pairs = 200 * 199 / 2
    assert total_pairs == 19900
    expected = np.array([550.0, 800.0, 200.0, 330.0]) / total_pairs
    assert np.allclose(out["prob_group_pairing_and_linked"], expected)


def test_prob_group_pairing_requires_two_individuals(counts):
    df = get_p_hat(counts)
    with pytest.raises(ValidationError, match="exceed one individual"):
        get_prob_group_pairing_and_linked(df, [1, 0])


def test_c_hat_bernoulli_trials(counts):
    out = get_c_hat(get_p_hat(counts))
    p = np.array([5 / 45, 8 / 100, 2 / 100, 3 / 45])
    assert np.allclose(out["c_hat"], 1.0 - (1.0 - p) ** 100)
    assert ((out["c_hat"] >= 0) & (out["c_hat"] <= 1)).all()


def test_c_hat_nan_propagates(three_groups_singleton):
    out = get_c_hat(get_p_hat(prepare_input_for_get_p_hat(*three_groups_singleton)))
    cc = (out["H1_group"] == "C") & (out["H2_group"] == "C")
    assert out.loc[cc, "c_hat"].isna().all()
