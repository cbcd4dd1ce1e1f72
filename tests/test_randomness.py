import random

from lumiere.randomness import fisher_yates_shuffle


class ScriptedRandom:
    """Returns queued values from randint, recording the bounds it was asked for."""

    def __init__(self, values):
        self.values = list(values)
        self.bounds = []

    def choice(self, seq):
        return seq[0]

    def randint(self, a, b):
        self.bounds.append((a, b))
        return self.values.pop(0)


def test_swaps_from_the_last_index_down():
    rng = ScriptedRandom([0, 1, 0])

    result = fisher_yates_shuffle(["a", "b", "c", "d"], rng)

    assert rng.bounds == [(0, 3), (0, 2), (0, 1)]
    # i=3 swaps with 0, i=2 swaps with 1, i=1 swaps with 0
    assert result == ["c", "d", "b", "a"]


def test_input_is_not_modified():
    items = [1, 2, 3, 4, 5]

    shuffled = fisher_yates_shuffle(items, random.Random(0))

    assert items == [1, 2, 3, 4, 5]
    assert sorted(shuffled) == items


def test_short_inputs_need_no_randomness():
    rng = ScriptedRandom([])

    assert fisher_yates_shuffle([], rng) == []
    assert fisher_yates_shuffle(["only"], rng) == ["only"]
    assert rng.bounds == []
