from __future__ import annotations


class MCAsymptoticsError(Exception):
    """Base exception for mcasymptotics."""


class ShapeError(MCAsymptoticsError, ValueError):
    """Invalid shape or dimension mismatch."""


class SingularDesignMatrix(MCAsymptoticsError, RuntimeError):
    """X'X is singular: n < k or the design is rank-deficient."""


class NotSupportedError(MCAsymptoticsError, NotImplementedError):
    """Feature is not supported."""
