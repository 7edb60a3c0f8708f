# portal/catalog.py
# -----------------
# Responsibility:
# - Describe every forecasting model the portal can drive
# - Lookup by slug / display name

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


XGBOOST_HEADERS = (
    "Date",
    "StoreID",
    "ProductID",
    "ProductName",
    "Category",
    "SubCategory",
    "City",
    "Region",
    "Price",
    "DiscountPct",
    "PromotionFlag",
    "CompetitionPrice",
    "Season",
    "HolidayFlag",
    "HolidayName",
    "AdSpend",
    "UnemploymentRate",
    "Inflation",
    "Temperature",
    "Precipitation",
    "MedianIncome",
    "CompetitorStoresNearby",
)


@dataclass(frozen=True)
class ModelSpec:
    slug: str
    name: str
    description: str
    category: str  # "ml" or "time-series"
    required_columns: Tuple[str, ...] = ()
    strict_headers: bool = False
    has_upload: bool = True
    uses_backend: bool = True  # False: upload is accepted locally, results are precomputed
    listed: bool = True
    exporter: Optional[str] = None
    flow: Tuple[str, ...] = ("upload", "validate", "parse", "ready")
    requirements: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def sample_file(self) -> str:
        return f"{self.slug.replace('-', '_')}_sample_dataset.csv"

    @property
    def category_label(self) -> str:
        return "Machine Learning" if self.category == "ml" else "Time Series"


MODELS: List[ModelSpec] = [
    ModelSpec(
        slug="xgboost",
        name="XGBoost",
        description="Gradient boosting for high accuracy predictions with excellent performance on structured data",
        category="ml",
        required_columns=XGBOOST_HEADERS,
        strict_headers=True,
        exporter="xgboost",
        requirements=(
            "Columns must match the template sample exactly, in the same order",
            "One row per store, product and month",
        ),
    ),
    ModelSpec(
        slug="catboost",
        name="CatBoost",
        description="Handles categorical features automatically without preprocessing requirements",
        category="ml",
        required_columns=("Date", "Demand"),
        requirements=("Daily rows with a Date and Demand column", "Optional drivers: Price, Inventory Level, Promotional"),
    ),
    ModelSpec(
        slug="lightgbm",
        name="LightGBM",
        description="Fast gradient boosting with low memory usage, optimized for large datasets",
        category="ml",
        required_columns=("Date", "Demand"),
        flow=("upload", "validate", "parse", "train", "ready"),
        requirements=("Daily rows with a Date and Demand column", "Numeric driver columns are used as features"),
    ),
    ModelSpec(
        slug="linear-regression",
        name="Linear Regression",
        description="Simple, interpretable baseline model for understanding linear relationships",
        category="ml",
        required_columns=("date", "demand", "price"),
        flow=("upload", "validate", "parse", "train", "predict", "ready"),
        requirements=("Columns: date, demand, price", "Additional numeric columns become regressors"),
    ),
    ModelSpec(
        slug="prophet",
        name="Prophet",
        description="Facebook's robust forecasting tool with automatic seasonality detection",
        category="time-series",
        required_columns=("Date", "UnitsSold"),
        requirements=("Daily Date and UnitsSold columns", "At least one full season of history"),
    ),
    ModelSpec(
        slug="arima",
        name="ARIMA",
        description="Classical time series forecasting for stationary data with trend analysis",
        category="time-series",
        required_columns=("date", "demand"),
        exporter="arima",
        requirements=("Columns: date, demand", "Evenly spaced observations"),
    ),
    ModelSpec(
        slug="arimax",
        name="ARIMAX",
        description="ARIMA with external variables for incorporating additional predictors",
        category="time-series",
        required_columns=("date", "demand"),
        exporter="arimax",
        flow=("upload", "validate", "parse", "train", "predict", "ready"),
        requirements=("Columns: date, demand", "Exogenous drivers such as price or promotion"),
    ),
    ModelSpec(
        slug="sarima",
        name="SARIMA",
        description="Seasonal ARIMA for cyclical data with seasonal pattern recognition",
        category="time-series",
        required_columns=("date", "sales"),
        requirements=("Columns: date, sales", "Two or more seasonal cycles recommended"),
    ),
    ModelSpec(
        slug="sarimax",
        name="SARIMAX",
        description="Seasonal ARIMA with eXogenous variables for time series forecasting with external factors and seasonal patterns",
        category="time-series",
        required_columns=("Date", "StoreID", "ProductID", "Price"),
        requirements=("Monthly rows per StoreID / ProductID", "Exogenous drivers such as Price, Promotion, Ad_Spend"),
    ),
    ModelSpec(
        slug="varima",
        name="VARIMA",
        description="Vector ARIMA for multivariate time series with cross-variable dependencies",
        category="time-series",
        required_columns=("date",),
        uses_backend=False,
        requirements=("A date column and two or more related numeric series",),
    ),
    ModelSpec(
        slug="lstm",
        name="LSTM",
        description="Recurrent neural network capturing long-range temporal dependencies",
        category="ml",
        has_upload=False,
        listed=False,
    ),
    ModelSpec(
        slug="tft",
        name="TFT",
        description="Temporal Fusion Transformer with interpretable multi-horizon attention",
        category="ml",
        has_upload=False,
        listed=False,
    ),
    ModelSpec(
        slug="random-forest",
        name="Random Forest",
        description="Ensemble of decision trees robust to noise and non-linear effects",
        category="ml",
        has_upload=False,
        listed=False,
    ),
]

_BY_SLUG = {m.slug: m for m in MODELS}


def list_models(category: Optional[str] = None, include_hidden: bool = False) -> List[ModelSpec]:
    """Models in catalog order, optionally filtered by category."""
    return [
        m for m in MODELS
        if (include_hidden or m.listed) and (category is None or m.category == category)
    ]


def get_model(slug: str) -> ModelSpec:
    try:
        return _BY_SLUG[slug]
    except KeyError:
        raise KeyError(f"Unknown model '{slug}'. Available: {', '.join(_BY_SLUG)}") from None


def slug_for(name: str) -> str:
    """Map a display name ('Linear Regression') to its slug ('linear-regression')."""
    for model in MODELS:
        if model.name.lower() == name.strip().lower():
            return model.slug
    return name.strip().lower().replace(" ", "-")
