"""
Seeded random source shared across one dataset build.
"""

import numpy as np


# Seed convention:
# - Create one RNG per dataset build and thread it through every sampling call.
# - A per-call seed replaces the shared stream for that call only (see resolve_rng).
class RNG:
    def __init__(self, seed=None):
        self.seed = None if seed is None else int(seed)
        self.rng = np.random.default_rng(self.seed)

    def choice(self, a, size=None, replace=True, p=None):
        return self.rng.choice(a, size=size, replace=replace, p=p)

    def random(self, size=None):
        return self.rng.random(size)

    def uniform(self, low=0.0, high=1.0, size=None):
        return self.rng.uniform(low, high, size)

    def normal(self, loc=0.0, scale=1.0, size=None):
        return self.rng.normal(loc, scale, size)

    def exponential(self, scale=1.0, size=None):
        return self.rng.exponential(scale, size)

    def integers(self, low, high=None, size=None, endpoint=False):
        return self.rng.integers(low, high, size=size, endpoint=endpoint)

    def permutation(self, x):
        return self.rng.permutation(x)


def resolve_rng(rng=None, seed=None):
    """Return the random source for one call.

    An explicit ``seed`` wins and yields a fresh stream; otherwise the shared
    ``rng`` is used, and a new unseeded stream is created when neither is set.
    """
    if seed is not None:
        return RNG(seed)
    if rng is None:
        return RNG()
    if isinstance(rng, RNG):
        return rng
    if isinstance(rng, np.random.Generator):
        wrapped = RNG()
        wrapped.rng = rng
        return wrapped
    raise TypeError("rng must be a mockdata RNG or numpy Generator")
