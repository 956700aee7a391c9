"""Shared fixtures: synthetic OHLCV bar frames."""

import numpy as np
import pandas as pd
import pytest


def make_bars(closes, volumes=None, spread=0.01, start="2022-01-03") -> pd.DataFrame:
    """Build an OHLCV frame around a close series; high/low sit `spread` away from close."""
    closes = np.asarray(closes, dtype=float)
    n = len(closes)
    if volumes is None:
        volumes = np.full(n, 1_000_000.0)
    return pd.DataFrame({
        "date": pd.bdate_range(start, periods=n),
        "open": closes,
        "high": closes * (1 + spread),
        "low": closes * (1 - spread),
        "close": closes,
        "volume": np.asarray(volumes, dtype=float),
    })


@pytest.fixture
def linear_bars():
    """300 bars rising linearly from 100 to 400."""
    return make_bars(np.linspace(100, 400, 300))


@pytest.fixture
def sine_bars():
    """300 bars oscillating around 100 with a 20-bar period."""
    i = np.arange(300)
    return make_bars(100 + 5 * np.sin(2 * np.pi * i / 20))


@pytest.fixture
def constant_bars():
    """120 identical bars with zero range."""
    return make_bars(np.full(120, 100.0), spread=0.0)


@pytest.fixture
def random_walk_bars():
    """300 bars of a seeded geometric random walk."""
    rng = np.random.default_rng(7)
    returns = rng.normal(0.0005, 0.015, 300)
    closes = 100 * np.cumprod(1 + returns)
    volumes = rng.integers(100_000, 1_000_000, 300)
    return make_bars(closes, volumes=volumes)


@pytest.fixture
def zigzag_bars():
    """Closes alternating 100/101, keeping RSI near 50."""
    return make_bars([100.0, 101.0] * 60)
