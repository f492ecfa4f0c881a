# errors.py
"""Exceptions raised by polygon construction and Boolean operations."""


class PolyTreeError(Exception):
    """Base class for recoverable polygon errors."""


class ConstructionError(PolyTreeError, ValueError):
    """A polygon node or link between nodes could not be built."""


class DegenerateContourError(ConstructionError):
    """Fewer than three points, or zero signed area."""


class PolarityMismatchError(ConstructionError):
    pass


class ContainmentError(ConstructionError):
    """A child contour is not inside its parent."""


class OverlapError(ConstructionError):
    """A sibling contour overlaps an existing sibling."""


class EmptyInputError(ConstructionError):
    pass


class OperationError(PolyTreeError):
    """A Boolean operation could not complete."""


class IntersectionMetadataError(AssertionError):
    """
    Intersection vertex already classified when it should not be.
    Signals misuse or an internal bug; not meant to be caught.
    """
