"""
Low level numeric utility functions and the tolerances used by the
envelope code.
"""

import numpy


EXP_MIN = -308
EXP_MAX = +709

LOG_MIN = 1e-308
LOG_MAX = 1e+308

## maximum shifted log-value; keeps exp(y) away from overflow
YCEIL = 50.
## critical relative x-value difference
XEPS = 0.00001
## critical y-value difference
YEPS = 0.1
## critical relative exp(y) difference
EYEPS = 0.001


def log(x, x_min=LOG_MIN, x_max=LOG_MAX):
    """
    Safe version of log, clips argument such that overflow does not occur.

    @param x: input
    @type x: numpy array or float or int

    @param x_min: lower value for clipping
    @type x_min: float

    @param x_max: upper value for clipping
    @type x_max: float
    """

    x_min = max(x_min, LOG_MIN)
    x_max = min(x_max, LOG_MAX)

    return numpy.log(numpy.clip(x, x_min, x_max))

def exp(x, x_min=EXP_MIN, x_max=EXP_MAX):
    """
    Safe version of exp, clips argument such that overflow does not occur.

    @param x: input
    @type x: numpy array or float or int

    @param x_min: lower value for clipping
    @type x_min: float

    @param x_max: upper value for clipping
    @type x_max: float
    """

    x_min = max(x_min, EXP_MIN)
    x_max = min(x_max, EXP_MAX)

    return numpy.exp(numpy.clip(x, x_min, x_max))

def expshift(y, y0):
    """
    Exponentiate C{y} shifted by the reference value C{y0}, such that the
    largest value of interest maps onto M{exp(YCEIL)}. Values far below the
    reference underflow to zero.

    @param y: log-value
    @type y: float
    @param y0: reference (maximum) log-value
    @type y0: float

    @rtype: float
    """
    if y - y0 > -2.0 * YCEIL:
        return float(exp(y - y0 + YCEIL))
    else:
        return 0.0

def logshift(ey, y0):
    """
    Inverse of L{expshift}.

    @param ey: shifted exponentiated value
    @type ey: float
    @param y0: reference (maximum) log-value
    @type y0: float

    @rtype: float
    """
    return float(log(ey)) + y0 - YCEIL

def isfinite(*values):
    """
    Return True if all C{values} are finite real numbers.
    """
    return bool(numpy.all(numpy.isfinite(numpy.array(values, dtype=float))))
