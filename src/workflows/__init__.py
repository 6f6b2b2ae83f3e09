"""
Workflows module - Aggregation and daily run orchestration.
"""
from workflows.aggregator import Aggregator
from workflows.briefing import BriefingPipeline, BriefingRun

__all__ = [
    "Aggregator",
    "BriefingPipeline",
    "BriefingRun",
]
