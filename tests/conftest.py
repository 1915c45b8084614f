from __future__ import annotations

import pandas as pd
import pytest


@pytest.fixture
def two_groups():
    """Groups A, B sampled (10, 10) from populations (100, 100)."""
    linkage = pd.DataFrame(
        {
            "H1_group": ["A", "A", "B", "B"],
            "H2_group": ["A", "B", "A", "B"],
            "num_linked_pairs_observed": [5, 8, 2, 3],
        },
    )
    return ["A", "B"], [10, 10], [100, 100], linkage


@pytest.fixture
def three_groups_singleton():
    """Group C sampled a single individual: its self-pairing has no possible pairs."""
    linkage = pd.DataFrame(
        {
            "H1_group": ["A", "A", "B", "C", "B"],
            "H2_group": ["A", "B", "B", "A", "C"],
            "num_linked_pairs_observed": [4, 6, 3, 1, 2],
        },
    )
    return ["A", "B", "C"], [12, 8, 1], [150, 90, 40], linkage
