"""Shared constants: factor levels, labels, colors, dataset locations."""

DATASET_URLS = {
    "diamonds": "https://vincentarelbundock.github.io/Rdatasets/csv/ggplot2/diamonds.csv",
    "txhousing": "https://vincentarelbundock.github.io/Rdatasets/csv/ggplot2/txhousing.csv",
}

DATA_FILES = {
    "diamonds": "diamonds.csv",
    "txhousing": "txhousing.csv",
}

# Column the Rdatasets mirror writes for R row names
ROWNAME_COLS = ["rownames", "Unnamed: 0"]

# Ordered from worst to best, as in the original factor definitions
CUT_LEVELS = ["Fair", "Good", "Very Good", "Premium", "Ideal"]
COLOR_LEVELS = ["D", "E", "F", "G", "H", "I", "J"]
CLARITY_LEVELS = ["I1", "SI2", "SI1", "VS2", "VS1", "VVS2", "VVS1", "IF"]

DIAMOND_FACTORS = {
    "cut": CUT_LEVELS,
    "color": COLOR_LEVELS,
    "clarity": CLARITY_LEVELS,
}

DIAMOND_COLS = ["carat", "cut", "color", "clarity", "depth", "table", "price", "x", "y", "z"]
TXHOUSING_COLS = ["city", "year", "month", "sales", "volume", "median", "listings", "inventory", "date"]

COLUMN_LABELS = {
    "carat": "Carat",
    "cut": "Cut",
    "color": "Color",
    "clarity": "Clarity",
    "price": "Price (USD)",
    "lcarat": "log2(Carat)",
    "lprice": "log2(Price)",
    "rel_price": "Relative Price (log2 residual)",
    "city": "City",
    "period": "Date",
    "date": "Date",
    "sales": "Sales",
    "log_sales": "log2(Sales)",
    "rel_sales": "Relative Sales (log2 residual)",
    "volume": "Volume (USD)",
    "median": "Median Price (USD)",
    "listings": "Active Listings",
    "inventory": "Months of Inventory",
    "month": "Month",
    "r_squared": "R-squared",
    "estimate": "Estimate",
    "multiplier": "Multiplicative Effect",
    "std_resid": "Standardized Residual",
    "fitted": "Fitted Value",
    "resid": "Residual",
}

MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

CUT_COLORS = {
    "Fair": "#E63946",
    "Good": "#F4A261",
    "Very Good": "#2A9D8F",
    "Premium": "#264653",
    "Ideal": "#7209B7",
}

BACKGROUND_LINE = "#C8C8C8"
HIGHLIGHT_LINE = "#E63946"
ACCENT = "#2A9D8F"
OUTLIER_COLOR = "#FB8500"

MAX_CARAT = 2.0
LOG_BASE = 2
OUTLIER_THRESHOLD = 2.0
N_EXTREME = 3

SECTION_TITLES = {
    1: "Removing Trend",
    2: "Texas Housing Data",
    3: "Visualising Models",
    4: "Model-Level Summaries",
    5: "Coefficient-Level Summaries",
    6: "Observation Data",
}
