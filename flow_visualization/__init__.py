"""
Flow Visualization Module.

Tracer particles advected through the interpolated wind field, emitting
line segments for a map renderer.
"""

from flow_visualization.particles import (
    AdvectionConfig,
    SegmentBatch,
    ParticleAdvectionSimulator,
)
from flow_visualization.animation import FlowAnimation

__all__ = [
    "AdvectionConfig",
    "SegmentBatch",
    "ParticleAdvectionSimulator",
    "FlowAnimation",
]
