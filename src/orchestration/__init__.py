"""Orchestration module for curation pipeline coordination."""

from src.orchestration.context import PipelineContext
from src.orchestration.result import PipelineResult
from src.orchestration.phases import (
    PipelinePhase,
    ScoutPhase,
    ScoutResult,
    EnrichPhase,
    EnrichResult,
    RankPhase,
    RankResult,
)
from src.orchestration.pipeline import CurationPipeline, build_context

__all__ = [
    "CurationPipeline",
    "build_context",
    "PipelineContext",
    "PipelineResult",
    "PipelinePhase",
    "ScoutPhase",
    "ScoutResult",
    "EnrichPhase",
    "EnrichResult",
    "RankPhase",
    "RankResult",
]
