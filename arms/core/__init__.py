"""
Exception taxonomy and small utilities shared by the sampling modules.

Two families of errors are raised by the library:

    - L{ConstructionError}: the sampler configuration is invalid; raised
      before any log-density evaluation takes place
    - L{SamplingError}: a draw failed, either because the log-density
      violates the assumptions of the envelope (L{EnvelopeViolationError}),
      or because of a numeric / internal guard

Both derive from L{ARMSError}, so a client can catch everything coming
from the library with a single except clause.
"""

import numpy


class ARMSError(Exception):
    pass

class ConstructionError(ARMSError, ValueError):
    pass

class TooFewInitialPointsError(ConstructionError):
    pass

class TooManyInitialPointsError(ConstructionError):
    pass

class PointsOutOfBoundsError(ConstructionError):
    pass

class PointsUnorderedError(ConstructionError):
    pass

class NegativeConvexityError(ConstructionError):
    pass

class PreviousIterateOutOfBoundsError(ConstructionError):
    pass

class InvalidBoundsError(ConstructionError):
    pass

class SamplingError(ARMSError, RuntimeError):
    pass

class EnvelopeViolationError(SamplingError):
    """
    The log-density is not concave and the Metropolis step is disabled.
    Enable it (and possibly raise the convexity adjustment) to sample from
    such a density.
    """
    pass

class PointOutsideIntervalError(SamplingError):
    pass

class IterationBudgetExceededError(SamplingError):
    pass

class InternalConsistencyError(SamplingError):
    pass


def iterable(obj):
    """
    Return True if C{obj} is a collection or iterator, but not a string.
    For Python 3 compatibility.
    """
    if isinstance(obj, (str, bytes)):
        return False
    if isinstance(obj, numpy.ndarray):
        return obj.ndim > 0

    return hasattr(obj, '__iter__')

def recycle(values, index):
    """
    Pick the C{index}-th item of C{values}, wrapping around its length.
    Scalars are returned as they are.

    @param values: a scalar or a sequence of per-item values
    @param index: item index
    @type index: int
    """
    if not iterable(values):
        return values

    values = list(values)
    if len(values) == 0:
        raise ValueError('Cannot recycle an empty sequence')

    return values[index % len(values)]
