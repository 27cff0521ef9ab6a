"""
Test the rule types and the parameter encoder.
"""

import numpy as np
import pytest

from rulegrid import RuleSet, RuleData, encode_params
from rulegrid.rules import PARAMS_WORD_COUNT, RULE_SET_COUNT
from rulegrid.patterns import CONWAY, moore_mask, empty_mask
from testutils import run_tests


def test_constants():
    assert RULE_SET_COUNT == 4
    assert PARAMS_WORD_COUNT == 22


def test_rule_set_defaults():
    r = RuleSet()
    assert r.thresholds() == (0, 0, 0, 0)
    assert r.enabled is False

    r = RuleSet(2, 3, 3, 3, True)
    assert r == CONWAY
    assert r.lower_stable == 2
    assert r.upper_born == 3


def test_encode_params_layout():
    rule_sets = [
        RuleSet(1, 2, 3, 4, True),
        RuleSet(5, 6, 7, 8, False),
        RuleSet(9, 10, 11, 12, True),
        RuleSet(13, 14, 15, 16, False),
    ]
    params = encode_params(200, 15, rule_sets)

    assert params.dtype == np.uint32
    assert params.shape == (22,)
    assert params.nbytes == 88
    assert list(params) == [
        200, 15,
        1, 2, 3, 4, 1,
        5, 6, 7, 8, 0,
        9, 10, 11, 12, 1,
        13, 14, 15, 16, 0,
    ]  # fmt: skip


def test_encode_params_needs_four_rule_sets():
    with pytest.raises(ValueError):
        encode_params(10, 3, [CONWAY])


def test_rule_data_from_rules():
    rules = RuleData.from_rules(3, (moore_mask(3), CONWAY))

    assert rules.neighborhood_size == 3
    assert len(rules.masks) == 4
    assert len(rules.rule_sets) == 4
    assert rules.rule_sets[0] == CONWAY
    assert all(not r.enabled for r in rules.rule_sets[1:])
    assert all(m.sum() == 0 for m in rules.masks[1:])
    assert rules.any_enabled

    for mask in rules.masks:
        assert mask.dtype == np.uint32
        assert mask.shape == (9,)
        assert mask.flags.c_contiguous

    assert "enabled=[1]" in repr(rules)


def test_rule_data_accepts_square_masks():
    square = moore_mask(5).reshape(5, 5)
    rules = RuleData.from_rules(5, (square, CONWAY), (square, CONWAY))
    assert rules.masks[0].shape == (25,)
    assert np.all(rules.masks[0] == moore_mask(5))
    assert [r.enabled for r in rules.rule_sets] == [True, True, False, False]


def test_rule_data_none_enabled():
    rules = RuleData.from_rules(3)
    assert not rules.any_enabled

    disabled = CONWAY._replace(enabled=False)
    rules = RuleData.from_rules(3, (moore_mask(3), disabled))
    assert not rules.any_enabled


def test_rule_data_validation():
    # Wrong mask size
    with pytest.raises(ValueError):
        RuleData.from_rules(3, (empty_mask(5), CONWAY))

    # Too many rules
    with pytest.raises(ValueError):
        RuleData.from_rules(3, *[(moore_mask(3), CONWAY)] * 5)

    # Wrong number of masks
    with pytest.raises(ValueError):
        RuleData(3, [moore_mask(3)], [CONWAY] * 4)

    # Not a RuleSet
    with pytest.raises(TypeError):
        RuleData(3, [moore_mask(3)] * 4, [(2, 3, 3, 3, True)] * 4)

    # Negative threshold
    with pytest.raises(ValueError):
        RuleData(3, [moore_mask(3)] * 4, [RuleSet(-1, 3, 3, 3, True)] * 4)

    # Non-integer threshold
    with pytest.raises(ValueError):
        RuleData(3, [moore_mask(3)] * 4, [RuleSet(1.5, 3, 3, 3, True)] * 4)


def test_rule_data_copies_masks():
    mask = moore_mask(3).astype(np.uint32)
    rules = RuleData.from_rules(3, (mask, CONWAY))
    mask[:] = 0
    assert rules.masks[0].sum() == 8


if __name__ == "__main__":
    run_tests(globals())
