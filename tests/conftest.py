import numpy as np
import pandas as pd
import pytest

MONTH_EFFECT = {
    1: 0.0, 2: 0.2, 3: 0.5, 4: 0.6, 5: 0.9, 6: 1.0,
    7: 0.95, 8: 0.8, 9: 0.5, 10: 0.4, 11: 0.2, 12: 0.3,
}
CITY_SIZE = {"Alpha": 64, "Beta": 256, "Gamma": 1024}


def _housing(noise_sd, seed=0):
    rng = np.random.RandomState(seed)
    rows = []
    for city, size in CITY_SIZE.items():
        for year in range(2000, 2005):
            for month in range(1, 13):
                log_sales = np.log2(size) + MONTH_EFFECT[month] + rng.normal(0, noise_sd)
                rows.append({
                    "city": city,
                    "year": year,
                    "month": month,
                    "sales": 2 ** log_sales,
                    "volume": 2 ** log_sales * 150000,
                    "median": 150000.0,
                    "listings": 1000.0,
                    "inventory": 5.0,
                    "date": year + (month - 1) / 12,
                })
    return pd.DataFrame(rows)


@pytest.fixture
def housing():
    """Noise-free monthly sales: log2(sales) = log2(size) + month effect."""
    return _housing(noise_sd=0.0)


@pytest.fixture
def noisy_housing():
    return _housing(noise_sd=0.1, seed=1)


@pytest.fixture
def raw_diamonds():
    """Diamonds as the CSV mirror ships them, with a leading rownames column."""
    rng = np.random.RandomState(42)
    n = 400
    carat = rng.uniform(0.2, 3.0, n)
    price = np.round(4000 * carat ** 1.7 * 2 ** rng.normal(0, 0.2, n))
    return pd.DataFrame({
        "rownames": np.arange(1, n + 1),
        "carat": carat,
        "cut": rng.choice(["Fair", "Good", "Very Good", "Premium", "Ideal"], n),
        "color": rng.choice(list("DEFGHIJ"), n),
        "clarity": rng.choice(["I1", "SI2", "SI1", "VS2", "VS1", "VVS2", "VVS1", "IF"], n),
        "depth": rng.uniform(55, 70, n),
        "table": rng.uniform(50, 65, n),
        "price": price,
        "x": carat * 6,
        "y": carat * 6,
        "z": carat * 4,
    })


@pytest.fixture
def line_data():
    """y = 1 + 2x plus a little noise."""
    rng = np.random.RandomState(7)
    x = np.linspace(0, 10, 200)
    return pd.DataFrame({"x": x, "y": 1 + 2 * x + rng.normal(0, 0.5, len(x))})
