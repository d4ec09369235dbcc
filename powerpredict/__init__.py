"""
PowerPredict

Household electricity consumption and cost forecasting from personal
history, weather and the national grid trend.
"""

__version__ = "0.1.0"

from .config import DEFAULT_CONSTANTS, ForecastConstants
from .model import predict
from .preprocessing import HistoryValidationError, load_history, parse_history

__all__ = [
    'DEFAULT_CONSTANTS',
    'ForecastConstants',
    'HistoryValidationError',
    'load_history',
    'parse_history',
    'predict',
]
