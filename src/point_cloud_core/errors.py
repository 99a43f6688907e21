"""
Error Taxonomy

All errors raised by the point cloud core derive from PointCloudError.
The kinds mirror how callers recover from them:

- structural: malformed input at construction or mutation boundaries
- semantic: the current attribute set does not support the operation
- numeric/range: invalid bounds, numbers or row indices
- external: failures reported by the transform graph
"""

from __future__ import annotations

from typing import Optional


class PointCloudError(Exception):
    """Base class for all point cloud errors."""


# -----------------------
# Structural
# -----------------------


class NoDataError(PointCloudError, ValueError):
    def __init__(self, what: str = "point_data"):
        self.what = what
        super().__init__(f"No data: {what}")


class ShapeMismatchError(PointCloudError, ValueError):
    def __init__(self, message: str):
        super().__init__(f"Lengths don't match: {message}")


class TypeMismatchError(PointCloudError, ValueError):
    def __init__(self, column: str, expected: str, actual: str):
        self.column = column
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Column '{column}' has type '{actual}', but type '{expected}' is expected"
        )


class ColumnNameMismatchError(PointCloudError, ValueError):
    def __init__(self, index: int, expected: str, actual: str):
        self.index = index
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"At column index {index} the column name '{expected}' is expected, but received '{actual}'"
        )


class ColumnAlreadyExistsError(PointCloudError, ValueError):
    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Column of name '{column}' already exists")


class ObligatoryColumnError(PointCloudError, ValueError):
    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Column '{column}' is obligatory and cannot be removed")


# -----------------------
# Semantic
# -----------------------


class MultipleFrameIdDefinitionsError(PointCloudError, ValueError):
    def __init__(self):
        super().__init__(
            "Individual points must not contain a frame_id, when the point cloud info defines one"
        )


class NoFrameIdDefinitionsError(PointCloudError, LookupError):
    def __init__(self):
        super().__init__(
            "Point cloud contains no frame_id definition (neither in the point cloud info nor the individual points)"
        )


class NoFrameIdDefinitionError(PointCloudError, LookupError):
    def __init__(self, frame_id: str):
        self.frame_id = frame_id
        super().__init__(f"Point cloud does not contain the frame_id '{frame_id}'")


class MissingColumnError(PointCloudError, LookupError):
    """Raised when an operation needs columns the store does not carry."""

    description = "required"

    def __init__(self, column: Optional[str] = None):
        self.column = column
        if column is not None:
            super().__init__(f"Point cloud contains no column '{column}'")
        else:
            super().__init__(f"Point cloud contains no {self.description} column(s)")


class NoIdColumnError(MissingColumnError):
    description = "id"


class NoTimestampColumnsError(MissingColumnError):
    description = "timestamp"


class NoSensorTranslationColumnError(MissingColumnError):
    description = "sensor translation"


class NoSensorRotationColumnError(MissingColumnError):
    description = "sensor rotation"


class NoColorColumnsError(MissingColumnError):
    description = "color"


class NoIntensityColumnError(MissingColumnError):
    description = "intensity"


class NoSphericalRangeColumnError(MissingColumnError):
    description = "spherical range"


class NoSphericalPointColumnsError(MissingColumnError):
    description = "spherical point"


class NoOctantIndicesColumnsError(MissingColumnError):
    description = "octant index"


class NoRemainingPointsError(PointCloudError, ValueError):
    def __init__(self, step: Optional[str] = None):
        self.step = step
        message = "No points remaining"
        if step:
            message += f" after applying '{step}'"
        super().__init__(message)


# -----------------------
# Numeric / range
# -----------------------


class LowerBoundExceedsUpperBoundError(PointCloudError, ValueError):
    def __init__(self, lower, upper):
        super().__init__(f"Lower bound {lower} exceeds upper bound {upper}")


class LowerBoundEqualsUpperBoundError(PointCloudError, ValueError):
    def __init__(self, lower, upper):
        super().__init__(f"Lower bound {lower} equals upper bound {upper}")


class InvalidNumberError(PointCloudError, ValueError):
    def __init__(self, message: str):
        super().__init__(f"Invalid number: {message}")


class RowIndexOutsideRangeError(PointCloudError, IndexError):
    def __init__(self, message: str):
        super().__init__(f"Row index outside range: {message}")


class NoRowIndicesError(PointCloudError, ValueError):
    def __init__(self):
        super().__init__("No row indices specified")


# -----------------------
# External (transform graph)
# -----------------------


class TransformGraphError(PointCloudError):
    """Base class for errors reported by the transform graph."""


class PathNotFoundError(TransformGraphError, LookupError):
    def __init__(self, source_frame_id: str, target_frame_id: str):
        self.source_frame_id = source_frame_id
        self.target_frame_id = target_frame_id
        super().__init__(
            f"No transform path from frame '{source_frame_id}' to frame '{target_frame_id}'"
        )


class TimeOutOfRangeError(TransformGraphError, ValueError):
    def __init__(self, transform: str, timestamp, message: str = "outside of the sampled time range"):
        self.transform = transform
        self.timestamp = timestamp
        super().__init__(f"Transform {transform} at {timestamp}: {message}")


class ConflictError(TransformGraphError, ValueError):
    def __init__(self, channel_id: str, transform: str):
        self.channel_id = channel_id
        self.transform = transform
        super().__init__(
            f"Transform {transform} on channel '{channel_id}' is defined by more than one source"
        )
