# daily_news/services/quote_providers/__init__.py
from .base import BaseQuoteProvider
from .alpha_vantage import AlphaVantageQuotes
from .mock_provider import MockQuotes
from .yf import YFQuotes

__all__ = ["BaseQuoteProvider", "AlphaVantageQuotes", "MockQuotes", "YFQuotes"]
