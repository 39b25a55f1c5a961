"""Pipeline orchestrator module.

Provides the render run coordination with:
- Forward-only state machine per run
- Fixed progress checkpoints delivered by callback or ProgressStream
- Single reported error per failed run
"""

from slidepipe.orchestrator.pipeline import CHECKPOINTS, Orchestrator, PipelineRun
from slidepipe.orchestrator.progress import ProgressStream
from slidepipe.orchestrator.state import PipelineState

__all__ = ["CHECKPOINTS", "Orchestrator", "PipelineRun", "PipelineState", "ProgressStream"]
