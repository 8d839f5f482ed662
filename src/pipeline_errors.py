"""
pipeline_errors.py
Error kinds raised by the shooting-incident pipeline stages.

Every error names the stage it came from so an aborted run can say where it
stopped. None of them are caught inside the pipeline: a stage that cannot
produce a correct result raises, and no partial output is written.
"""


class PipelineError(ValueError):
    """Base class for all pipeline failures."""

    stage = "pipeline"

    def __init__(self, message: str, stage: str = None):
        if stage is not None:
            self.stage = stage
        super().__init__(f"[{self.stage}] {message}")


class ParseError(PipelineError):
    """A date, time or outcome value does not match its expected format."""

    stage = "features"


class SchemaError(PipelineError):
    """An expected column is absent."""

    stage = "load"


class InsufficientDataError(PipelineError):
    """Too few records, or an outcome layout the estimator cannot fit."""

    stage = "estimate"


class EmptyGroupError(PipelineError):
    """An extremum was requested over zero groups."""

    stage = "aggregate"
