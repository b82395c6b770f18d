"""Intensity zone inference for completed and planned workouts."""

from typing import Dict, Optional, Union

import numpy as np

from .workouts import CompletedLog, PlannedWorkout

MIN_ZONE = 1
MAX_ZONE = 5
DEFAULT_ZONE = 2

# (upper TSS bound, zone) pairs, checked in order
TSS_ZONE_BANDS = ((30, 1), (60, 2), (90, 3), (120, 4))

# Sub-type keywords of planned sessions, checked in order
SUB_TYPE_ZONE_KEYWORDS = (
    (("tempo", "threshold"), 3),
    (("interval", "vo2", "sprint"), 4),
    (("easy", "recovery", "zone 1", "zone1"), 1),
    (("long", "endurance"), 2),
)


def _zone_index(key: Union[str, int]) -> Optional[int]:
    if isinstance(key, int):
        return key
    digits = "".join(ch for ch in str(key) if ch.isdigit())
    return int(digits) if digits else None


def average_zone(zone_seconds: Optional[Dict[Union[str, int], int]]) -> Optional[int]:
    """Time-weighted average zone of a distribution.

    Args:
        zone_seconds: Seconds spent per zone, keyed "Z1".."Z5" or 1..5

    Returns:
        Rounded zone clamped to [1, 5], or None when no time was recorded
    """
    if not zone_seconds:
        return None

    zones = []
    seconds = []
    for key, value in zone_seconds.items():
        index = _zone_index(key)
        if index is None or not value or value <= 0:
            continue
        zones.append(index)
        seconds.append(value)

    if not seconds:
        return None

    weighted = float(np.average(zones, weights=seconds))
    # Half-up rounding
    return int(np.clip(np.floor(weighted + 0.5), MIN_ZONE, MAX_ZONE))


def zone_from_tss(tss: Optional[int]) -> int:
    """Coarse zone estimate from a workout's TSS."""
    if tss is None:
        return DEFAULT_ZONE
    for upper, zone in TSS_ZONE_BANDS:
        if tss < upper:
            return zone
    return MAX_ZONE


def zone_from_sub_type(sub_type: Optional[str]) -> Optional[int]:
    if not sub_type:
        return None
    text = sub_type.lower()
    for keywords, zone in SUB_TYPE_ZONE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return zone
    return None


def infer_zone(activity) -> int:
    """Infer the dominant intensity zone of a scheduled activity.

    Completed logs use heart-rate zones, then power zones, then TSS bands.
    Planned workouts use sub-type keywords, then TSS bands.
    """
    if isinstance(activity, CompletedLog):
        zone = average_zone(activity.hr_zone_seconds)
        if zone is None:
            zone = average_zone(activity.power_zone_seconds)
        if zone is not None:
            return zone
        return zone_from_tss(activity.computed_tss)

    if isinstance(activity, PlannedWorkout):
        zone = zone_from_sub_type(activity.sub_type)
        if zone is not None:
            return zone
        return zone_from_tss(activity.planned_tss)

    return zone_from_tss(getattr(activity, "tss", None))
