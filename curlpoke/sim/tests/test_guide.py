import random
from collections import Counter

from curlpoke.core.types import GuideDirection
from curlpoke.sim.guide import GuideDirector


def test_next_is_one_of_three_and_tracked():
    g = GuideDirector(random.Random(1))
    for _ in range(50):
        d = g.next()
        assert d in (GuideDirection.LEFT, GuideDirection.STRAIGHT, GuideDirection.RIGHT)
        assert g.current is d


def test_roughly_uniform():
    g = GuideDirector(random.Random(42))
    counts = Counter(g.next() for _ in range(3000))
    for d in GuideDirection:
        assert 850 < counts[d] < 1150


def test_curl_direction():
    assert GuideDirection.RIGHT.curl == 1
    assert GuideDirection.LEFT.curl == -1
    assert GuideDirection.STRAIGHT.curl == 0
