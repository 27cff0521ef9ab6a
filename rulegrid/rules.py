"""
Rule sets, the per-step rule payload, and the encoder for the kernel's uniform parameters.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

import numpy as np


__all__ = ["RULE_SET_COUNT", "PARAMS_WORD_COUNT", "RuleSet", "RuleData", "encode_params"]


RULE_SET_COUNT = 4

# grid_size, neighborhood_size, then 5 words per rule set.
PARAMS_WORD_COUNT = 2 + 5 * RULE_SET_COUNT


class RuleSet(NamedTuple):
    """Birth and survival thresholds on neighbor counts, plus an enable flag.

    An alive cell survives when its count lies in ``[lower_stable, upper_stable]``.
    A dead cell is born when its count lies in ``[lower_born, upper_born]``.
    Both ranges are inclusive. A rule set only counts neighbors at the offsets
    its mask marks, see ``RuleData``.
    """

    lower_stable: int = 0
    upper_stable: int = 0
    lower_born: int = 0
    upper_born: int = 0
    enabled: bool = False

    def thresholds(self) -> tuple:
        return (self.lower_stable, self.upper_stable, self.lower_born, self.upper_born)


DISABLED = RuleSet()


def _check_rule_set(rule_set):
    if not isinstance(rule_set, RuleSet):
        raise TypeError(f"Expected a RuleSet, got {rule_set.__class__.__name__}.")
    for name, value in zip(RuleSet._fields[:4], rule_set.thresholds()):
        if int(value) != value or value < 0:
            raise ValueError(f"RuleSet.{name} must be a non-negative int, got {value!r}")


def _as_mask(mask, neighborhood_size):
    m = np.asarray(mask)
    expected = neighborhood_size * neighborhood_size
    if m.size != expected:
        raise ValueError(
            f"Mask of size {m.size} does not match neighborhood size {neighborhood_size} ({expected} cells)."
        )
    return np.array(m.reshape(-1), dtype=np.uint32)  # always a copy


class RuleData:
    """The payload for one simulation step: four masks and their four rule sets.

    Arguments:
        neighborhood_size (int): the side of each square mask. Must be odd.
        masks (sequence): four array-likes with ``neighborhood_size**2`` elements
            (flat or square). A value of 1 marks the offset as a neighbor.
        rule_sets (sequence): four ``RuleSet`` objects. Index i uses mask i.

    The masks are stored as flat ``uint32`` arrays, ready for upload. The mask
    value at the center offset is ignored by the kernel.
    """

    def __init__(self, neighborhood_size: int, masks: Sequence, rule_sets: Sequence):
        if len(masks) != RULE_SET_COUNT or len(rule_sets) != RULE_SET_COUNT:
            raise ValueError(
                f"RuleData needs exactly {RULE_SET_COUNT} masks and {RULE_SET_COUNT} rule sets."
            )
        for rule_set in rule_sets:
            _check_rule_set(rule_set)
        self._neighborhood_size = int(neighborhood_size)
        self._masks = tuple(_as_mask(m, self._neighborhood_size) for m in masks)
        self._rule_sets = tuple(rule_sets)

    @classmethod
    def from_rules(cls, neighborhood_size: int, *pairs) -> RuleData:
        """Create RuleData from up to four ``(mask, rule_set)`` pairs.

        Unused slots get an empty mask and a disabled rule set.
        """
        if len(pairs) > RULE_SET_COUNT:
            raise ValueError(f"At most {RULE_SET_COUNT} rules can be given.")
        empty = np.zeros(neighborhood_size * neighborhood_size, np.uint32)
        masks = [mask for mask, _ in pairs]
        rule_sets = [rule_set for _, rule_set in pairs]
        while len(masks) < RULE_SET_COUNT:
            masks.append(empty)
            rule_sets.append(DISABLED)
        return cls(neighborhood_size, masks, rule_sets)

    def __repr__(self):
        enabled = [i + 1 for i, r in enumerate(self._rule_sets) if r.enabled]
        return f"<RuleData {self._neighborhood_size}x{self._neighborhood_size} enabled={enabled} at {hex(id(self))}>"

    @property
    def neighborhood_size(self) -> int:
        """The side of the square neighborhood masks."""
        return self._neighborhood_size

    @property
    def masks(self) -> tuple:
        """The four masks, as flat uint32 arrays."""
        return self._masks

    @property
    def rule_sets(self) -> tuple:
        """The four rule sets."""
        return self._rule_sets

    @property
    def any_enabled(self) -> bool:
        """Whether at least one rule set is enabled. If not, a step is the identity."""
        return any(r.enabled for r in self._rule_sets)


def encode_params(grid_size: int, neighborhood_size: int, rule_sets: Sequence) -> np.ndarray:
    """Pack the uniform parameters for the kernel.

    Returns a uint32 array of 22 words::

        [grid_size, neighborhood_size,
         lower_stable1, upper_stable1, lower_born1, upper_born1, enabled1,
         ...
         lower_stable4, upper_stable4, lower_born4, upper_born4, enabled4]

    This order must match the ``Params`` struct in the shader.
    """
    if len(rule_sets) != RULE_SET_COUNT:
        raise ValueError(f"Expected {RULE_SET_COUNT} rule sets, got {len(rule_sets)}.")
    words = [grid_size, neighborhood_size]
    for rule_set in rule_sets:
        words.extend(rule_set.thresholds())
        words.append(1 if rule_set.enabled else 0)
    params = np.array(words, dtype=np.uint32)
    assert params.shape == (PARAMS_WORD_COUNT,)  # internal sanity check
    return params
