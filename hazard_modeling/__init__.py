"""
Hazard Modeling Module for Drone Operations.

This module decides whether wind conditions are within the operating
envelope of small unmanned aircraft at each analysis altitude.
"""

from hazard_modeling.flight_safety import (
    SafetyVerdict,
    is_safe_for_drones,
    select_window,
    classify,
    classify_next_hours,
    height_profile_table,
)

__all__ = [
    "SafetyVerdict",
    "is_safe_for_drones",
    "select_window",
    "classify",
    "classify_next_hours",
    "height_profile_table",
]
