"""
Yahoo! Shopping marketplace adapter.
"""
from sake_finder.collectors.yahoo.client import StageAttempt, YahooAdapter
from sake_finder.collectors.yahoo.stages import StagedQuery, YahooBaseParams, build_stages

__all__ = [
    "YahooAdapter",
    "StageAttempt",
    "StagedQuery",
    "YahooBaseParams",
    "build_stages",
]
