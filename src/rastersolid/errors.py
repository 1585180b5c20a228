"""
Pipeline exceptions and error reporting.

Error codes:
- R0xx: input acquisition and preprocessing
- R1xx: tracing
- R2xx: vector data and solid construction
- R3xx: export
- R9xx: configuration
"""

from __future__ import annotations

from typing import Optional


class RasterSolidError(Exception):
    """Base exception for failures surfaced to the caller.

    ``stage`` names the pipeline stage that failed so front ends can
    report it without a traceback.
    """

    code = "R000"
    stage = "pipeline"

    def __init__(self, message: str, *, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage

    def format(self) -> str:
        """Format the error for display."""
        return f"error[{self.code}] {self.stage}: {self.message}"


class NoImageLoaded(RasterSolidError):
    """Preprocessing invoked without a source buffer (R001)."""
    code = "R001"
    stage = "preprocess"

    def __init__(self, message: str = "no image has been loaded", **kwargs):
        super().__init__(message, **kwargs)


class InvalidSource(RasterSolidError):
    """Unsupported or undecodable image source (R002)."""
    code = "R002"
    stage = "acquire"


class MalformedTraceInput(RasterSolidError):
    """Binary buffer with inconsistent dimensions (R101)."""
    code = "R101"
    stage = "trace"


class EmptyVectorData(RasterSolidError):
    """No usable polygon survived classification or filtering (R201)."""
    code = "R201"
    stage = "vectorize"


class ExportWithNoModel(RasterSolidError):
    """Serialization requested with an empty mesh or shape list (R301)."""
    code = "R301"
    stage = "export"


class ConfigurationError(RasterSolidError, ValueError):
    """Invalid pipeline option (R901)."""
    code = "R901"
    stage = "config"


__all__ = [
    "RasterSolidError",
    "NoImageLoaded",
    "InvalidSource",
    "MalformedTraceInput",
    "EmptyVectorData",
    "ExportWithNoModel",
    "ConfigurationError",
]
