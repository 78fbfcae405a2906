"""Landmark classification and temporal stabilization."""
from .geometry import GeometryClassifier, GeometryConfig
from .stabilizer import ClickEdgeDetector, StabilizerConfig, TemporalStabilizer

__all__ = [
    "GeometryClassifier",
    "GeometryConfig",
    "ClickEdgeDetector",
    "StabilizerConfig",
    "TemporalStabilizer",
]
