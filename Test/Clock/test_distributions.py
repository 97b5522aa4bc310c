import unittest

import numpy as np
from scipy import stats

from petrikit.Clock.distributions import (
    Deterministic,
    Exponential,
    FiringDistribution,
    Gamma,
    LogNormal,
    Uniform,
    Weibull,
    as_distribution,
)


class TestDistributions(unittest.TestCase):
    def test_samples_are_non_negative(self):
        rng = np.random.default_rng(0)
        for d in (
            Exponential(2.0),
            Weibull(1.5, 2.0),
            Gamma(2.0, 0.5),
            LogNormal(0.0, 0.5),
            Uniform(1.0, 2.0),
        ):
            for _ in range(20):
                self.assertGreaterEqual(d.sample(rng), 0.0, repr(d))

    def test_uniform_support(self):
        rng = np.random.default_rng(1)
        for _ in range(50):
            x = Uniform(1.0, 2.0).sample(rng)
            self.assertTrue(1.0 <= x <= 2.0)

    def test_means(self):
        self.assertAlmostEqual(Exponential(2.0).mean(), 0.5)
        self.assertAlmostEqual(Gamma(2.0, 3.0).mean(), 6.0)
        self.assertAlmostEqual(Uniform(1.0, 3.0).mean(), 2.0)
        self.assertEqual(Deterministic(4.0).mean(), 4.0)

    def test_seeded_samples_reproducible(self):
        a = [Exponential(1.0).sample(np.random.default_rng(3)) for _ in range(2)]
        self.assertEqual(a[0], a[1])

    def test_deterministic_consumes_one_draw(self):
        rng1 = np.random.default_rng(0)
        rng2 = np.random.default_rng(0)
        self.assertEqual(Deterministic(3.0).sample(rng1), 3.0)
        rng2.random()
        self.assertEqual(rng1.random(), rng2.random())

    def test_invalid_parameters(self):
        for bad in (
            lambda: Exponential(0.0),
            lambda: Weibull(-1.0, 1.0),
            lambda: Gamma(0.0),
            lambda: LogNormal(0.0, 0.0),
            lambda: Uniform(2.0, 1.0),
            lambda: Deterministic(-1.0),
        ):
            with self.assertRaises(ValueError):
                bad()

    def test_wrapping_requires_frozen_distribution(self):
        with self.assertRaises(TypeError):
            FiringDistribution(42)


class TestAsDistribution(unittest.TestCase):
    def test_distribution_is_its_own_factory(self):
        d = Exponential(1.0)
        self.assertIs(d(0.0, now=5.0), d)
        self.assertIs(as_distribution(d, 0.0, now=5.0), d)

    def test_time_dependent_factory(self):
        def factory(elapsed, now, sampler_state):
            return Deterministic(10.0 if now < 5 else 1.0)

        self.assertEqual(as_distribution(factory, 0.0, now=6.0).delay, 1.0)
        self.assertEqual(as_distribution(factory, 0.0, now=1.0).delay, 10.0)

    def test_factory_receives_elapsed_and_sampler_state(self):
        seen = []

        def factory(elapsed, now, sampler_state):
            seen.append((elapsed, now, sampler_state["scale"]))
            return Deterministic(sampler_state["scale"])

        d = as_distribution(factory, 0.0, now=3.0, sampler_state={"scale": 2.5})
        self.assertEqual(d.delay, 2.5)
        self.assertEqual(seen, [(0.0, 3.0, 2.5)])

    def test_scipy_frozen_entries(self):
        d = as_distribution(stats.expon(scale=2.0))
        self.assertIsInstance(d, FiringDistribution)
        self.assertAlmostEqual(d.mean(), 2.0)
        d2 = as_distribution(lambda elapsed, **_: stats.weibull_min(c=2.0))
        self.assertIsInstance(d2, FiringDistribution)

    def test_bad_entries(self):
        with self.assertRaises(TypeError):
            as_distribution(5)
        with self.assertRaises(TypeError):
            as_distribution(lambda elapsed, **_: 5)


if __name__ == "__main__":
    unittest.main()
