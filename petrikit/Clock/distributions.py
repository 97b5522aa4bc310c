"""
Firing-time distributions.

A transition's distribution entry is a *factory* called once per enable as
``factory(elapsed, now=now, sampler_state=state)``:

* ``elapsed`` is the time the clock has already been enabled, which is
  ``0.0`` because a clock always starts fresh when it is enabled;
* ``now`` is the current simulation time;
* ``sampler_state`` is the run's auxiliary mapping
  (:attr:`~petrikit.Simulation.context.SimulationContext.sampler_state`).

It returns a :class:`FiringDistribution` or a frozen :mod:`scipy.stats`
distribution. Every :class:`FiringDistribution` is its own factory, so
time-homogeneous entries can be given directly:

.. code-block:: python

    clockdists = {
        "infect": Exponential(0.3),
        "recover": lambda elapsed, now, **_: Weibull(1.5, 4.0 if now < 10 else 2.0),
    }

Samples are drawn from :mod:`scipy.stats` frozen distributions with the
explicit :class:`numpy.random.Generator` of the simulation, one ``rvs`` call
per sample.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Mapping, Optional, Union

import numpy as np
from scipy import stats

__all__ = [
    "FiringDistribution",
    "Exponential",
    "Weibull",
    "Gamma",
    "LogNormal",
    "Uniform",
    "Deterministic",
    "DistributionFactory",
    "as_distribution",
]


class FiringDistribution:
    """
    Delay distribution backed by a frozen :mod:`scipy.stats` distribution.

    :param dist: Frozen distribution with non-negative support, e.g.
        ``scipy.stats.weibull_min(c=2.0, scale=1.0)``.
    :type dist: scipy.stats.rv_continuous frozen instance
    """

    def __init__(self, dist: Any) -> None:
        if not hasattr(dist, "rvs"):
            raise TypeError(f"Expected a frozen scipy.stats distribution, got {dist!r}")
        self.dist = dist

    def sample(self, rng: np.random.Generator) -> float:
        """
        Draw one delay.

        :raises ValueError: If the draw is negative or NaN.
        """
        delay = float(self.dist.rvs(random_state=rng))
        if math.isnan(delay) or delay < 0:
            raise ValueError(f"{self!r} produced invalid delay {delay}")
        return delay

    def mean(self) -> float:
        return float(self.dist.mean())

    def __call__(
        self,
        elapsed: float = 0.0,
        now: Optional[float] = None,
        sampler_state: Optional[Mapping[str, Any]] = None,
    ) -> FiringDistribution:
        return self

    def __repr__(self) -> str:
        name = getattr(getattr(self.dist, "dist", None), "name", "dist")
        return f"{type(self).__name__}({name}, kwds={getattr(self.dist, 'kwds', {})})"


class Exponential(FiringDistribution):
    """Exponential delay with the given ``rate`` (mean ``1 / rate``)."""

    def __init__(self, rate: float) -> None:
        if not rate > 0:
            raise ValueError(f"rate must be positive, got {rate}")
        self.rate = float(rate)
        super().__init__(stats.expon(scale=1.0 / self.rate))

    def __repr__(self) -> str:
        return f"Exponential(rate={self.rate})"


class Weibull(FiringDistribution):
    """Weibull delay with ``shape`` (k) and ``scale`` (lambda)."""

    def __init__(self, shape: float, scale: float = 1.0) -> None:
        if not (shape > 0 and scale > 0):
            raise ValueError(f"shape and scale must be positive, got {shape}, {scale}")
        self.shape, self.scale = float(shape), float(scale)
        super().__init__(stats.weibull_min(c=self.shape, scale=self.scale))

    def __repr__(self) -> str:
        return f"Weibull(shape={self.shape}, scale={self.scale})"


class Gamma(FiringDistribution):
    def __init__(self, shape: float, scale: float = 1.0) -> None:
        if not (shape > 0 and scale > 0):
            raise ValueError(f"shape and scale must be positive, got {shape}, {scale}")
        self.shape, self.scale = float(shape), float(scale)
        super().__init__(stats.gamma(a=self.shape, scale=self.scale))

    def __repr__(self) -> str:
        return f"Gamma(shape={self.shape}, scale={self.scale})"


class LogNormal(FiringDistribution):
    """Log-normal delay; ``mean`` and ``sigma`` are those of the underlying normal."""

    def __init__(self, mean: float, sigma: float) -> None:
        if not sigma > 0:
            raise ValueError(f"sigma must be positive, got {sigma}")
        self.mu, self.sigma = float(mean), float(sigma)
        super().__init__(stats.lognorm(s=self.sigma, scale=math.exp(self.mu)))

    def __repr__(self) -> str:
        return f"LogNormal(mean={self.mu}, sigma={self.sigma})"


class Uniform(FiringDistribution):
    def __init__(self, low: float, high: float) -> None:
        if not 0 <= low < high:
            raise ValueError(f"need 0 <= low < high, got {low}, {high}")
        self.low, self.high = float(low), float(high)
        super().__init__(stats.uniform(loc=self.low, scale=self.high - self.low))

    def __repr__(self) -> str:
        return f"Uniform(low={self.low}, high={self.high})"


class Deterministic(FiringDistribution):
    """
    Fixed delay.

    Still consumes one uniform draw per sample so that every enable advances
    the random stream by the same amount regardless of distribution.
    """

    def __init__(self, delay: float) -> None:
        if not delay >= 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        self.delay = float(delay)
        self.dist = None

    def sample(self, rng: np.random.Generator) -> float:
        rng.random()
        return self.delay

    def mean(self) -> float:
        return self.delay

    def __repr__(self) -> str:
        return f"Deterministic(delay={self.delay})"


DistributionFactory = Union[FiringDistribution, Callable[..., Any]]


def as_distribution(
    entry: DistributionFactory,
    elapsed: float = 0.0,
    now: float = 0.0,
    sampler_state: Optional[Mapping[str, Any]] = None,
) -> FiringDistribution:
    """
    Resolve a distribution entry for one enable.

    ``entry`` may be a :class:`FiringDistribution`, a frozen scipy
    distribution, or a callable
    ``(elapsed, now=..., sampler_state=...) -> FiringDistribution | frozen
    scipy distribution``.

    :param entry: The transition's distribution entry.
    :param elapsed: Time the clock has already been enabled.
    :param now: Current simulation time.
    :param sampler_state: Auxiliary per-run state handed to factories.
    :raises TypeError: If the entry resolves to anything else.
    """
    if isinstance(entry, FiringDistribution):
        return entry
    if hasattr(entry, "rvs"):
        return FiringDistribution(entry)
    if callable(entry):
        out = entry(elapsed, now=now, sampler_state=sampler_state)
        if isinstance(out, FiringDistribution):
            return out
        if hasattr(out, "rvs"):
            return FiringDistribution(out)
        raise TypeError(f"Distribution factory returned {out!r}")
    raise TypeError(f"Not a distribution or distribution factory: {entry!r}")
