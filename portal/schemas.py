# portal/schemas.py
# -----------------
# Request / row models shared by the exporters and the download service.
# Field names follow the JSON the forecasting backend returns.

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ArimaForecastRow(BaseModel):
    date: str
    prediction: float
    lower: Optional[float] = None
    upper: Optional[float] = None
    lower_tight: Optional[float] = None
    upper_tight: Optional[float] = None


class ArimaxForecastRow(BaseModel):
    date: str
    prediction: float
    lower_bound: Optional[float] = None
    upper_bound: Optional[float] = None
    lower_tight: Optional[float] = None
    upper_tight: Optional[float] = None


class ArimaxPricingRow(BaseModel):
    price: float
    predicted_demand: float
    profit: float
    demand_lower: Optional[float] = None
    demand_upper: Optional[float] = None
    profit_lower: Optional[float] = None
    profit_upper: Optional[float] = None


class XgbPredictionRow(BaseModel):
    StoreID: str
    ProductID: str
    Date: str
    PredictedMonthlyDemand: float


class XgbPriceRow(BaseModel):
    month: str  # YYYY-MM
    current_price: float
    upper_bound: float
    lower_bound: float


class ArimaExportInput(BaseModel):
    forecast: List[ArimaForecastRow] = Field(default_factory=list)


class ArimaxExportInput(BaseModel):
    forecast: List[ArimaxForecastRow] = Field(default_factory=list)
    pricing: List[ArimaxPricingRow] = Field(default_factory=list)


class XgbExportInput(BaseModel):
    predictions: List[XgbPredictionRow] = Field(default_factory=list)
    # keyed "StoreID::ProductID"
    price_series_by_key: Dict[str, List[XgbPriceRow]] = Field(default_factory=dict)
    # store -> products that must get a sheet even without predictions
    expected_products: Dict[str, List[str]] = Field(default_factory=dict)
