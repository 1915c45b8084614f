import numpy as np
import pandas as pd
import pytest

from bumblebee.core import pairings as pr
from bumblebee.exceptions import ValidationError

# ---------------------------------------------------------------------
# Unit Tests: Max possible pairs
# ---------------------------------------------------------------------

def test_max_possible_pairs_self_and_cross():
    n1 = np.array([10.0, 10.0, 7.0, 1.0, 0.0, 2.0])
    n2 = np.array([10.0, 7.0, 10.0, 1.0, 0.0, 2.0])
    same = np.array([True, False, False, True, True, True])
    out = pr.max_possible_pairs(n1, n2, same)
    assert np.allclose(out, [45.0, 70.0, 70.0, 0.0, 0.0, 1.0])


@pytest.mark.parametrize("n", range(0, 25))
def test_self_pairing_is_n_choose_2(n):
    out = pr.max_possible_pairs(np.array([n]), np.array([n]), np.array([True]))
    expected = n * (n - 1) / 2 if n > 1 else 0.0
    assert out[0] == expected
    assert out[0] >= 0

# ---------------------------------------------------------------------
# Unit Tests: Group table
# ---------------------------------------------------------------------

def test_build_group_table_collapses_identical_duplicates():
    groups = pr.build_group_table(["A", "B", "A"], [3, 4, 3], [30, 40, 30])
    assert groups["group"].tolist() == ["A", "B"]
    assert groups["individuals_sampled"].tolist() == [3.0, 4.0]


def test_build_group_table_rejects_conflicting_duplicates():
    with pytest.raises(ValidationError, match="conflicting sizes"):
        pr.build_group_table(["A", "B", "A"], [3, 4, 5], [30, 40, 30])


@pytest.mark.parametrize(
    ("sampled", "population", "match"),
    [
        ([-1, 4], [30, 40], "non-negative"),
        ([3, 4], [30, -40], "non-negative"),
        ([3.5, 4], [30, 40], "integer counts"),
        ([3, 4, 5], [30, 40], "Length mismatch"),
        ([3, np.nan], [30, 40], "finite"),
    ],
)
def test_build_group_table_validation(sampled, population, match):
    groups = ["A", "B"] if len(sampled) == 2 else ["A", "B", "C"]
    with pytest.raises(ValidationError, match=match):
        pr.build_group_table(groups, sampled, population)


def test_build_group_table_requires_groups():
    with pytest.raises(ValidationError, match="At least one"):
        pr.build_group_table([], [], [])

# ---------------------------------------------------------------------
# Unit Tests: Enumeration
# ---------------------------------------------------------------------

def test_enumerate_all_ordered_pairs():
    groups = pr.build_group_table(["A", "B"], [10, 10], [100, 100])
    out = pr.enumerate_group_pairings(groups)
    assert list(out.columns) == list(pr.PAIRING_COLUMNS)
    assert list(zip(out["H1_group"], out["H2_group"])) == [
        ("A", "A"), ("A", "B"), ("B", "A"), ("B", "B"),
    ]
    assert out["max_possible_pairs_in_sample"].tolist() == [45.0, 100.0, 100.0, 45.0]
    assert out["max_possible_pairs_in_population"].tolist() == [4950.0, 10000.0, 10000.0, 4950.0]


def test_enumerate_n_squared_rows_and_sizes():
    groups = pr.build_group_table(["x", "y", "z"], [5, 2, 1], [50, 20, 10])
    out = pr.enumerate_group_pairings(groups)
    assert len(out) == 9
    row = out[(out["H1_group"] == "y") & (out["H2_group"] == "x")].iloc[0]
    assert row["number_hosts_sampled_group_1"] == 2
    assert row["number_hosts_sampled_group_2"] == 5
    assert row["number_hosts_population_group_1"] == 20
    assert row["number_hosts_population_group_2"] == 50
    assert row["max_possible_pairs_in_sample"] == 10
    zz = out[(out["H1_group"] == "z") & (out["H2_group"] == "z")].iloc[0]
    assert zz["max_possible_pairs_in_sample"] == 0
    assert zz["max_possible_pairs_in_population"] == 45

# ---------------------------------------------------------------------
# Unit Tests: Linkage join
# ---------------------------------------------------------------------

@pytest.fixture
def pairings():
    groups = pr.build_group_table(["A", "B"], [10, 10], [100, 100])
    return pr.enumerate_group_pairings(groups)


def test_attach_missing_pairings_default_to_zero(pairings):
    lk = pd.DataFrame({"H1_group": ["A"], "H2_group": ["B"], "num_linked_pairs_observed": [7]})
    out = pr.attach_linkage_counts(pairings, lk)
    assert out["num_linked_pairs_observed"].tolist() == [0.0, 7.0, 0.0, 0.0]


def test_attach_is_order_sensitive(pairings):
    lk = pd.DataFrame(
        {"H1_group": ["B", "A"], "H2_group": ["A", "B"], "num_linked_pairs_observed": [2, 9]},
    )
    out = pr.attach_linkage_counts(pairings, lk).set_index(["H1_group", "H2_group"])
    assert out.loc[("A", "B"), "num_linked_pairs_observed"] == 9
    assert out.loc[("B", "A"), "num_linked_pairs_observed"] == 2


def test_attach_accepts_count_alias(pairings):
    lk = pd.DataFrame({"H1_group": ["B"], "H2_group": ["B"], "number_linked_pairs_observed": [3]})
    out = pr.attach_linkage_counts(pairings, lk)
    assert out["num_linked_pairs_observed"].tolist() == [0.0, 0.0, 0.0, 3.0]


def test_attach_rejects_unknown_group(pairings):
    lk = pd.DataFrame({"H1_group": ["A"], "H2_group": ["Z"], "num_linked_pairs_observed": [1]})
    with pytest.raises(ValidationError, match="absent from the sampling input: Z"):
        pr.attach_linkage_counts(pairings, lk)


def test_attach_rejects_duplicate_pairings(pairings):
    lk = pd.DataFrame(
        {"H1_group": ["A", "A"], "H2_group": ["B", "B"], "num_linked_pairs_observed": [1, 2]},
    )
    with pytest.raises(ValidationError, match="Duplicate linkage rows"):
        pr.attach_linkage_counts(pairings, lk)


@pytest.mark.parametrize("count", [-1, 1.5])
def test_attach_rejects_bad_counts(pairings, count):
    lk = pd.DataFrame({"H1_group": ["A"], "H2_group": ["B"], "num_linked_pairs_observed": [count]})
    with pytest.raises(ValidationError):
        pr.attach_linkage_counts(pairings, lk)


def test_attach_requires_columns(pairings):
    lk = pd.DataFrame({"H1_group": ["A"], "H2_group": ["B"]})
    with pytest.raises(ValidationError, match="missing"):
        pr.attach_linkage_counts(pairings, lk)


def test_prepare_input_for_get_p_hat(two_groups):
    out = pr.prepare_input_for_get_p_hat(*two_groups)
    assert list(out.columns) == [*pr.PAIRING_COLUMNS, "num_linked_pairs_observed"]
    assert out["num_linked_pairs_observed"].tolist() == [5.0, 8.0, 2.0, 3.0]
