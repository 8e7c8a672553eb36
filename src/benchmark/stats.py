"""Streaming mean/variance accumulation for batch runs."""

from __future__ import annotations

import math

from pydantic import BaseModel


class RunningStats(BaseModel):
    """
    Welford accumulator: mean and variance without storing samples.

    Workers keep their own instance and the batch merges them once at the
    end, so no accumulator is ever shared between threads.
    """

    count: int = 0
    mean: float = 0.0
    m2: float = 0.0

    def add(self, value: float) -> None:
        self.count += 1
        delta = value - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (value - self.mean)

    def merge(self, other: "RunningStats") -> None:
        """Fold another accumulator into this one (Chan et al. pairwise update)."""
        if other.count == 0:
            return
        if self.count == 0:
            self.count, self.mean, self.m2 = other.count, other.mean, other.m2
            return
        total = self.count + other.count
        delta = other.mean - self.mean
        self.mean += delta * other.count / total
        self.m2 += other.m2 + delta * delta * self.count * other.count / total
        self.count = total

    @property
    def variance(self) -> float:
        """Sample variance (n - 1 denominator)."""
        if self.count < 2:
            return 0.0
        return self.m2 / (self.count - 1)

    @property
    def stddev(self) -> float:
        return math.sqrt(self.variance)

    @property
    def standard_error(self) -> float:
        """Standard error of the mean."""
        if self.count < 2:
            return 0.0
        return math.sqrt(self.variance / self.count)
