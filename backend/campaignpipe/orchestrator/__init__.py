"""Pipeline orchestrator module.

Provides the coordination layer for the campaign pipeline:
- Stage and status constants
- Observable run state (StatusTracker)
- Stage executors and the video polling loop
- PipelineOrchestrator with single-flight and cancellation support
"""

from campaignpipe.orchestrator.pipeline import PipelineOrchestrator
from campaignpipe.orchestrator.state import STAGE_ORDER, StageName, StageStatus
from campaignpipe.orchestrator.tracker import PipelineRun, StatusTracker

__all__ = [
    "PipelineOrchestrator",
    "PipelineRun",
    "STAGE_ORDER",
    "StageName",
    "StageStatus",
    "StatusTracker",
]
