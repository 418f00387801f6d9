import pytest

from healthshare_plans.locations import is_penalty_state, penalty_notice, zip_to_state


@pytest.mark.parametrize(
    "zip_code, state",
    [
        ("02108", "MA"),
        ("02903", "RI"),
        ("90210", "CA"),
        ("07030", "NJ"),
        ("20500", "DC"),
        ("10001", None),
        ("73301", None),
        ("12", None),
    ],
)
def test_zip_to_state(zip_code, state):
    assert zip_to_state(zip_code) == state


def test_penalty_notice_only_for_penalty_states():
    assert is_penalty_state("CA")
    assert not is_penalty_state(None)
    assert penalty_notice("90210").startswith("California charges a state tax penalty")
    assert penalty_notice("30301") is None
