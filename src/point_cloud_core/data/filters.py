"""
Point Cloud Filter Chain

Applies the bounds of a FilterConfig section to a point cloud, one step at
a time in a fixed order. Unlike the single filters of PointCloud, which
return None when nothing matched, the chain treats an emptied cloud as an
error and reports the step that removed the last point.
"""

import logging
from typing import Callable, List, Optional, Tuple

from .point_cloud import PointCloud
from ..errors import NoRemainingPointsError

logger = logging.getLogger(__name__)


def _filter_steps(filter_config) -> List[Tuple[str, Callable[[PointCloud], Optional[PointCloud]]]]:
    """Build (name, step) pairs in the order x, y, z, spherical range, beam length."""
    steps = []
    single_bounds = [
        ("x_min", PointCloud.filter_by_x_min),
        ("x_max", PointCloud.filter_by_x_max),
        ("y_min", PointCloud.filter_by_y_min),
        ("y_max", PointCloud.filter_by_y_max),
        ("z_min", PointCloud.filter_by_z_min),
        ("z_max", PointCloud.filter_by_z_max),
        ("spherical_range_min", PointCloud.filter_by_spherical_range_min),
        ("spherical_range_max", PointCloud.filter_by_spherical_range_max),
    ]
    for name, method in single_bounds:
        value = getattr(filter_config, name)
        if value is not None:
            steps.append((name, lambda cloud, m=method, v=value: m(cloud, v)))

    beam_min, beam_max = filter_config.beam_length_min, filter_config.beam_length_max
    if (beam_min is None) != (beam_max is None):
        raise ValueError("Beam length filtering requires both beam_length_min and beam_length_max")
    if beam_min is not None:
        steps.append(("beam_length", lambda cloud: cloud.filter_by_beam_length(beam_min, beam_max)))
    return steps


def apply_filter_config(point_cloud: PointCloud, filter_config) -> PointCloud:
    """
    Apply all configured bounds to a point cloud.

    Args:
        point_cloud: Input cloud (left unmodified)
        filter_config: FilterConfig section with optional bounds

    Returns:
        Filtered PointCloud (the input itself when no bound is configured)

    Raises:
        NoRemainingPointsError: If a step leaves no points
        ValueError: If only one of the beam length bounds is set
    """
    steps = _filter_steps(filter_config)
    if not steps:
        return point_cloud

    total_points = point_cloud.size()
    filtered = point_cloud
    for name, step in steps:
        result = step(filtered)
        if result is None:
            logger.warning(f"Filter '{name}' removed all remaining points")
            raise NoRemainingPointsError(name)
        logger.debug(f"Filter '{name}': {filtered.size()} -> {result.size()} points")
        filtered = result

    stats = get_filter_statistics(total_points, filtered.size(), [name for name, _ in steps])
    logger.info(
        f"Filtered {stats['total_points']} -> {stats['filtered_points']} points "
        f"({stats['percentage']:.1f}%) with {stats['filter_description']}"
    )
    return filtered


def get_filter_statistics(total_points: int, filtered_points: int, applied_filters: List[str]) -> dict:
    """Generate statistics about point filtering results.

    Args:
        total_points: Total number of points before filtering
        filtered_points: Number of points after filtering
        applied_filters: Names of the filter steps that were applied

    Returns:
        Dictionary with counts, percentage and filter description
    """
    percentage = (filtered_points / total_points * 100.0) if total_points > 0 else 0.0
    filter_desc = ", ".join(applied_filters) if applied_filters else "no filter"
    return {
        "total_points": total_points,
        "filtered_points": filtered_points,
        "percentage": percentage,
        "filter_description": filter_desc,
        "applied_filters": list(applied_filters),
    }
