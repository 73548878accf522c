"""Processing pipeline: orchestrator and the models it owns per run."""

from summariser.pipeline.models import (
    PipelineEvent,
    PipelineResult,
    ProcessedBlog,
    ProcessingRequest,
    Stage,
)
from summariser.pipeline.orchestrator import BlogPipeline

__all__ = [
    "BlogPipeline",
    "PipelineEvent",
    "PipelineResult",
    "ProcessedBlog",
    "ProcessingRequest",
    "Stage",
]
