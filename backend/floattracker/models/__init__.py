"""
ORM models for the float tracker tables.
"""

from floattracker.models.corporate_action import CorporateAction
from floattracker.models.historical_data import HistoricalDataPoint
from floattracker.models.sec_filing import SecFiling
from floattracker.models.ticker import Ticker

__all__ = [
    "CorporateAction",
    "HistoricalDataPoint",
    "SecFiling",
    "Ticker",
]
