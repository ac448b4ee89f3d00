"""
dAPI Reader - Beacon-level OEV price aggregation

This module reads a dAPI from the signed data of its Beacons:
- DapiName: dAPI name encoding and hashing
- FeedResolver: On-chain resolution of a dAPI to its Beacons
- UpdateSelector: Latest-update selection and value decoding
- PriceAggregator: Median and mean over decoded prices
- DapiReader: Main orchestrator for a single read
- fetchers: Signed API client
"""

from .DapiName import DapiName
from .DapiReader import DapiReader, DapiReading, SourceFailure
from .FeedDescriptor import FeedDescriptor, SourceRef
from .FeedResolver import FeedResolver, ResolutionError
from .oev import derive_oev_template_id
from .PriceAggregator import AggregateResult, aggregate, mean, median
from .UpdateSelector import DecodedPrice, decode_price, decode_price_exact, select_latest

__all__ = [
    "AggregateResult",
    "DapiName",
    "DapiReader",
    "DapiReading",
    "DecodedPrice",
    "FeedDescriptor",
    "FeedResolver",
    "ResolutionError",
    "SourceFailure",
    "SourceRef",
    "aggregate",
    "decode_price",
    "decode_price_exact",
    "derive_oev_template_id",
    "mean",
    "median",
    "select_latest",
]
