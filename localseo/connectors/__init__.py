"""
localseo/connectors package marker.
"""

from localseo.connectors.base import RETRYABLE_STATUS_CODES, BaseConnector
from localseo.connectors.dataforseo import DataForSEOConnector, match_location

__all__ = [
    "BaseConnector",
    "DataForSEOConnector",
    "RETRYABLE_STATUS_CODES",
    "match_location",
]
