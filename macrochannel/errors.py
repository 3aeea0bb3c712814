"""
Error taxonomy for the pipeline.

Every failure raised by a pipeline stage derives from PipelineError so the
CLI can report which stage stopped the run.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for pipeline failures."""

    stage = "pipeline"

    def __init__(self, message: str, stage: str | None = None):
        self.message = message
        if stage is not None:
            self.stage = stage
        super().__init__(message)


class FetchError(PipelineError):
    """A provider request failed or returned unusable data."""

    stage = "fetch"


class InsufficientDataError(PipelineError):
    """Too few observations for the requested computation."""

    stage = "model"


class ModelError(PipelineError):
    """An estimation step failed or its preconditions do not hold."""

    stage = "model"
