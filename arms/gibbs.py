"""
Coordinate-wise (Gibbs) sampling of multivariate densities with ARMS.

Each sweep updates one coordinate at a time, conditioning on the current
values of all other coordinates. The multivariate log-density is called as
C{log_pdf(position, index, *args)}, where C{position} is the full current
vector (with coordinate C{index} set to the trial value) and C{index} is the
coordinate being updated:

    >>> def log_pdf(x, i):
            return -0.5 * (x[0] ** 2 - 1.6 * x[0] * x[1] + x[1] ** 2) / 0.36
    >>> sampler = GibbsSampler(log_pdf, [0., 0.], -10., 10., [-2., 0., 2.])
    >>> samples = sampler.sample(1000)
    >>> samples.shape
    (1000, 2)

Bounds, initial points and the remaining settings are given either once for
all coordinates or as sequences indexed by coordinate (recycled if shorter).
"""

import logging

import numpy

from arms.core import iterable, recycle
from arms.sampler import ARMS, SamplingResult, default_initial_points


LOG = logging.getLogger(__name__)


class CoordinateContext(object):
    """
    Caller-owned view of a multivariate log-density as a function of a single
    coordinate.

    The context shares C{position} with its owner: L{evaluate} writes the
    trial value into C{position[index]} before calling the log-density.

    @param position: current position, modified in place
    @type position: numpy array
    @param index: coordinate being updated
    @type index: int
    @param log_pdf: multivariate log-density, C{log_pdf(position, index, *args)}
    @type log_pdf: callable
    @param args: extra arguments for C{log_pdf}
    @type args: tuple
    """

    def __init__(self, position, index, log_pdf, args=()):

        self._position = position
        self._index = None
        self._log_pdf = log_pdf
        self._args = tuple(args)

        self.index = index

    @property
    def position(self):
        return self._position

    @property
    def index(self):
        return self._index
    @index.setter
    def index(self, value):
        value = int(value)
        if not 0 <= value < len(self._position):
            raise IndexError(value)
        self._index = value

    def evaluate(self, x):
        """
        Log-density with coordinate C{index} set to C{x}.
        """
        self._position[self._index] = x
        return self._log_pdf(self._position, self._index, *self._args)

    __call__ = evaluate


class GibbsSampler(object):
    """
    Gibbs sampler whose conditional updates are ARMS draws. A fresh
    univariate sampler is built for every coordinate in every sweep, since
    the conditional density changes with the other coordinates.

    @param log_pdf: multivariate log-density, C{log_pdf(position, index, *args)}
    @type log_pdf: callable
    @param previous: starting position
    @type previous: iterable of float
    @param lower: lower bound(s), per coordinate
    @param upper: upper bound(s), per coordinate
    @param initial: initial points, shared by all coordinates or one list per
                    coordinate; defaults to C{n_initial} evenly spaced points
    @param n_initial: number of default initial points
    @type n_initial: int
    @param convexity: convexity adjustment(s), per coordinate
    @param max_points: maximum envelope size(s), per coordinate
    @param metropolis: whether to use the Metropolis step, per coordinate
    @param args: extra arguments for C{log_pdf}
    @type args: tuple
    """

    def __init__(self, log_pdf, previous, lower, upper, initial=None, n_initial=10,
                 convexity=0., max_points=100, metropolis=False, args=()):

        position = numpy.array(previous, dtype=float).ravel()

        if len(position) == 0:
            raise ValueError('Need at least one coordinate')

        self._context = CoordinateContext(position, 0, log_pdf, args)
        self._lower = lower
        self._upper = upper
        self._initial = initial
        self._n_initial = int(n_initial)
        self._convexity = convexity
        self._max_points = max_points
        self._metropolis = metropolis
        self._n_evaluations = 0
        self._sweeps = 0

    @property
    def dimension(self):
        return len(self._context.position)

    @property
    def state(self):
        """
        Copy of the current position.
        @rtype: numpy array
        """
        return self._context.position.copy()

    @property
    def n_evaluations(self):
        """
        Total number of log-density evaluations so far
        @rtype: int
        """
        return self._n_evaluations

    def _initial_points(self, index, lower, upper):

        initial = self._initial

        if initial is None:
            return default_initial_points(lower, upper, self._n_initial)
        elif any(iterable(item) for item in initial):
            return recycle(initial, index)
        else:
            return initial

    def sweep(self, rng=None):
        """
        Update every coordinate once, in order.

        @param rng: source of uniform random numbers
        @return: the new position
        @rtype: numpy array
        """
        context = self._context

        for p in range(self.dimension):

            context.index = p
            current = context.position[p]

            lower, upper = recycle(self._lower, p), recycle(self._upper, p)

            try:
                sampler = ARMS(context.evaluate, lower, upper,
                               self._initial_points(p, lower, upper),
                               convexity=recycle(self._convexity, p),
                               max_points=recycle(self._max_points, p),
                               metropolis=recycle(self._metropolis, p),
                               x_previous=current)
                x = sampler.draw(rng)
            except Exception:
                # the context leaves the last trial value behind
                context.position[p] = current
                raise

            context.position[p] = x
            self._n_evaluations += sampler.n_evaluations

        self._sweeps += 1
        LOG.debug('Sweep %d done, %d evaluations so far', self._sweeps, self._n_evaluations)

        return self.state

    def sample(self, n_samples, rng=None):
        """
        Perform C{n_samples} sweeps.

        @return: one row per sweep
        @rtype: numpy array of shape (n_samples, dimension)
        """
        samples = numpy.empty((n_samples, self.dimension))

        for i in range(n_samples):
            samples[i] = self.sweep(rng)

        return samples


def arms_gibbs(n_samples, previous, log_pdf, lower, upper, initial=None, n_initial=10, convexity=0.,
               max_points=100, metropolis=False, args=(), include_n_evaluations=False, rng=None):
    """
    Draw C{n_samples} Gibbs sweeps starting from C{previous}. See
    L{GibbsSampler} for the meaning of the parameters.

    @rtype: numpy array of shape (n_samples, dimension) or L{SamplingResult}
    """
    sampler = GibbsSampler(log_pdf, previous, lower, upper, initial, n_initial,
                           convexity, max_points, metropolis, args)
    samples = sampler.sample(n_samples, rng)

    if include_n_evaluations:
        return SamplingResult(samples, sampler.n_evaluations)
    else:
        return samples
