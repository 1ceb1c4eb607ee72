import random

from minnow.rng import get_random_engine


def test_values_in_range():
    engine = get_random_engine()
    values = [engine.getrandbits(32) for _ in range(100)]
    assert all(0 <= value < 2**32 for value in values)
    assert len(values) == 100


def test_engines_are_independently_seeded():
    sequences = {tuple(get_random_engine().getrandbits(32) for _ in range(8)) for _ in range(5)}
    assert len(sequences) == 5


def test_engine_ignores_global_seed():
    random.seed(0)
    first = [get_random_engine().random() for _ in range(4)]
    random.seed(0)
    second = [get_random_engine().random() for _ in range(4)]
    assert len(set(first) | set(second)) == 8


def test_engine_state_reproduces_sequence():
    engine = get_random_engine()
    state = engine.getstate()
    first = [engine.randint(0, 2**32 - 1) for _ in range(10)]
    engine.setstate(state)
    assert [engine.randint(0, 2**32 - 1) for _ in range(10)] == first