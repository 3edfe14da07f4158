"""
Adaptive Rejection Metropolis Sampling (ARMS)

The L{ARMS} class generates random samples from a univariate distribution
specified by its log-density, implemented by the user as any callable
C{log_pdf(x, *args)}. The log-density may be unnormalised.

If the log-density is concave, ARMS reduces to adaptive rejection sampling
and produces independent samples. Otherwise the Metropolis step has to be
switched on: each draw then becomes a step of a Markov chain, which starts
from C{x_previous}.

The user must also supply at least three initial points. It is not
essential that these values be very accurate, but performance will
generally depend on their accuracy: they should straddle the mode(s) of
the density.

    >>> sampler = ARMS(lambda x: -0.5 * x ** 2, -1000., 1000., [-1., 0., 1.])
    >>> samples = sampler.sample(5000)

Reference: Gilks, W. R., Best, N. G. and Tan, K. K. C. (1995) Adaptive
rejection Metropolis sampling. Applied Statistics, 44, 455-472.
"""

import logging

import numpy
import numpy.random

from arms.core import iterable, recycle
from arms.core import TooFewInitialPointsError, TooManyInitialPointsError, PointsOutOfBoundsError, \
     PointsUnorderedError, NegativeConvexityError, PreviousIterateOutOfBoundsError, InvalidBoundsError, \
     EnvelopeViolationError, IterationBudgetExceededError
from arms.envelope import Envelope, Geometry
from arms.numeric import YCEIL, exp, expshift, logshift, isfinite


LOG = logging.getLogger(__name__)


class Verdict(object):
    """
    Enumeration of the outcomes of testing a candidate point.
    """

    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    VIOLATION = 'violation'


class Configuration(object):
    """
    Immutable sampler settings.

    @param lower: lower bound of the support
    @type lower: float
    @param upper: upper bound of the support
    @type upper: float
    @param convexity: convexity adjustment, used only with Metropolis
    @type convexity: float
    @param max_points: maximum number of knots in the envelope
    @type max_points: int
    @param metropolis: whether to perform the Metropolis step
    @type metropolis: bool
    """

    def __init__(self, lower, upper, convexity=0., max_points=100, metropolis=False):

        self._lower = float(lower)
        self._upper = float(upper)
        self._convexity = float(convexity)
        self._max_points = int(max_points)
        self._metropolis = bool(metropolis)

    def __repr__(self):
        return '<Configuration: [{0.lower}, {0.upper}], convexity={0.convexity}, ' \
               'max_points={0.max_points}, metropolis={0.metropolis}>'.format(self)

    @property
    def lower(self):
        return self._lower

    @property
    def upper(self):
        return self._upper

    @property
    def convexity(self):
        return self._convexity

    @property
    def max_points(self):
        return self._max_points

    @property
    def metropolis(self):
        return self._metropolis


class MetropolisState(object):
    """
    Current iterate of the Markov chain and its log-density.
    """

    def __init__(self, x_previous, y_previous):

        self.x_previous = float(x_previous)
        self.y_previous = float(y_previous)

    def __repr__(self):
        return '<MetropolisState: x={0.x_previous}, y={0.y_previous}>'.format(self)


class SamplingResult(object):
    """
    Samples together with the number of log-density evaluations it took
    to produce them. Unpacks like a tuple::

        samples, n_evaluations = result
    """

    def __init__(self, samples, n_evaluations):

        self._samples = samples
        self._n_evaluations = int(n_evaluations)

    def __iter__(self):
        return iter([self._samples, self._n_evaluations])

    @property
    def samples(self):
        return self._samples

    @property
    def n_evaluations(self):
        return self._n_evaluations


class ARMS(object):
    """
    Adaptive rejection Metropolis sampler of a univariate density.

    The envelope is built once, at construction time, and refined by every
    subsequent draw.

    @param log_pdf: log-density, called as C{log_pdf(x, *args)}
    @type log_pdf: callable
    @param lower: lower bound of the support
    @type lower: float
    @param upper: upper bound of the support
    @type upper: float
    @param initial: at least three increasing points inside (lower, upper)
    @type initial: iterable of float
    @param convexity: convexity adjustment (>= 0)
    @type convexity: float
    @param max_points: maximum number of knots in the envelope
    @type max_points: int
    @param metropolis: whether to perform the Metropolis step; required
                       unless C{log_pdf} is concave
    @type metropolis: bool
    @param x_previous: current value of the Markov chain (Metropolis only);
                       defaults to the median of C{initial}
    @type x_previous: float
    @param args: extra arguments passed to C{log_pdf}
    @type args: tuple
    @param max_iterations: maximum number of candidates per draw
    @type max_iterations: int

    @raise ConstructionError: if the configuration is invalid
    @raise EnvelopeViolationError: if the log-density is found to be convex
                                   at the initial points and Metropolis is off
    """

    MAX_ITERATIONS = 10000

    def __init__(self, log_pdf, lower, upper, initial, convexity=0., max_points=100,
                 metropolis=False, x_previous=None, args=(), max_iterations=MAX_ITERATIONS):

        self._log_pdf = log_pdf
        self._args = tuple(args)
        self._n_evaluations = 0
        self._max_iterations = int(max_iterations)
        self._exhausted = False
        self._violated = False

        initial = numpy.array(initial, dtype=float).ravel()

        self._config = Configuration(lower, upper, convexity, max_points, metropolis)
        self._check(initial, x_previous)

        self._envelope = self._initialize(initial)
        self._metropolis_state = None

        if self._config.metropolis:
            if x_previous is None:
                x_previous = float(numpy.median(initial))
            self._metropolis_state = MetropolisState(x_previous, self._evaluate(x_previous))

    def _check(self, initial, x_previous):

        config = self._config
        n = len(initial)

        if not isfinite(config.lower, config.upper) or config.lower >= config.upper:
            raise InvalidBoundsError('Invalid support [{0.lower}, {0.upper}]'.format(config))

        if n < 3:
            raise TooFewInitialPointsError('At least 3 initial points required, got {0}'.format(n))

        if 2 * n + 1 > config.max_points:
            raise TooManyInitialPointsError('{0} initial points need {1} knots, max_points is {2}'.format(
                n, 2 * n + 1, config.max_points))

        if initial[0] <= config.lower or initial[-1] >= config.upper:
            raise PointsOutOfBoundsError('Initial points must lie inside ({0.lower}, {0.upper})'.format(config))

        if numpy.any(initial[1:] <= initial[:-1]):
            raise PointsUnorderedError('Initial points must be strictly increasing')

        if config.convexity < 0:
            raise NegativeConvexityError('Negative convexity adjustment: {0}'.format(config.convexity))

        if config.metropolis and x_previous is not None:
            if not config.lower <= x_previous <= config.upper:
                raise PreviousIterateOutOfBoundsError('Previous iterate {0} outside [{1.lower}, {1.upper}]'.format(
                    x_previous, config))

    def _initialize(self, initial):

        config = self._config

        y = [self._evaluate(x) for x in initial]
        envelope = Envelope(config.lower, config.upper, initial, y,
                            config.convexity, config.max_points, config.metropolis)

        if envelope.intersect() == Geometry.VIOLATION:
            raise EnvelopeViolationError('Log-density is not concave at the initial points; '
                                         'enable the Metropolis step')
        envelope.cumulate()

        LOG.debug('Initial envelope: %d knots from %d points in [%g, %g]',
                  len(envelope), len(initial), config.lower, config.upper)

        return envelope

    @property
    def config(self):
        """
        Sampler settings
        @rtype: L{Configuration}
        """
        return self._config

    @property
    def envelope(self):
        """
        Current rejection envelope
        @rtype: L{Envelope}
        """
        return self._envelope

    @property
    def metropolis_state(self):
        """
        Current state of the Markov chain, None unless Metropolis is on
        @rtype: L{MetropolisState}
        """
        return self._metropolis_state

    @property
    def n_evaluations(self):
        """
        Total number of log-density evaluations so far
        @rtype: int
        """
        return self._n_evaluations

    @property
    def log_pdf(self):
        return self._log_pdf

    def _evaluate(self, x):

        y = float(self._log_pdf(x, *self._args))
        self._n_evaluations += 1

        return y

    def quantile(self, probability):
        """
        Quantile of the (normalised, exponentiated) envelope. Does not
        modify the envelope.

        @param probability: cumulative probability
        @type probability: float in [0, 1]
        @rtype: float
        """
        if not 0. <= probability <= 1.:
            raise ValueError('Probability must be within [0, 1]: {0}'.format(probability))

        return self._envelope.invert(probability).x

    def draw(self, rng=None):
        """
        Draw a sample. With Metropolis switched on this is one step of the
        Markov chain, and the returned value may equal the previous one.

        @param rng: source of uniform random numbers in [0, 1); any object
                    with a C{random()} method. Defaults to L{numpy.random}.

        @rtype: float
        @raise EnvelopeViolationError: if the log-density is not concave and
                                       Metropolis is switched off. The
                                       envelope is left inconsistent, so every
                                       later draw raises it again
        @raise IterationBudgetExceededError: if no candidate was accepted
                                             within C{max_iterations}
        """
        if self._violated:
            raise EnvelopeViolationError('Envelope is inconsistent after an earlier violation')

        if rng is None:
            rng = numpy.random

        for i in range(self._max_iterations):

            point = self._envelope.invert(rng.random())
            verdict = self._test(point, rng)

            if verdict == Verdict.ACCEPTED:
                return point.x
            elif verdict == Verdict.VIOLATION:
                self._violated = True
                raise EnvelopeViolationError('Log-density is not concave near {0}; '
                                             'enable the Metropolis step'.format(point.x))

        raise IterationBudgetExceededError('No sample accepted after {0} candidates'.format(self._max_iterations))

    def sample(self, n_samples, rng=None):
        """
        Draw C{n_samples} successive samples.

        @rtype: numpy array
        """
        return numpy.array([self.draw(rng) for i in range(n_samples)])

    def _test(self, point, rng):
        """
        Perform the squeezing, rejection and Metropolis tests on a candidate.

        @rtype: str
        """
        envelope = self._envelope
        metropolis = self._config.metropolis

        y = logshift(rng.random() * point.ey, envelope.y_max)

        if not metropolis:
            y_squeeze = envelope.squeeze(point)
            if y_squeeze is not None and y <= y_squeeze:
                return Verdict.ACCEPTED

        y_new = self._evaluate(point.x)

        if not metropolis or y >= y_new:
            point.y = y_new
            point.ey = expshift(y_new, envelope.y_max)
            point.evaluated = True

            if self._update(point) == Geometry.VIOLATION:
                return Verdict.VIOLATION

            if y >= y_new:
                return Verdict.REJECTED
            else:
                return Verdict.ACCEPTED

        state = self._metropolis_state

        z_previous = min(envelope.u(state.x_previous), state.y_previous)
        z_new = min(y_new, point.y)

        w = min(0., y_new - z_new - state.y_previous + z_previous)

        if w > -YCEIL:
            ratio = float(exp(w))
        else:
            ratio = 0.

        if rng.random() > ratio:
            # stay where we are
            point.x = state.x_previous
            point.y = state.y_previous
            point.ey = expshift(point.y, envelope.y_max)
            point.evaluated = True
        else:
            state.x_previous = point.x
            state.y_previous = y_new

        return Verdict.ACCEPTED

    def _update(self, point):

        if self._envelope.full:
            if not self._exhausted:
                LOG.debug('Envelope is full (%d knots), no further refinement', len(self._envelope))
                self._exhausted = True
            return Geometry.OK

        return self._envelope.insert(point, self._evaluate)


def default_initial_points(lower, upper, n_initial=10):
    """
    C{n_initial} points evenly spaced inside (lower, upper).

    @rtype: numpy array
    """
    n_initial = int(n_initial)

    return lower + numpy.arange(1, n_initial + 1) * (upper - lower) / (n_initial + 1.)


def _nested(initial):

    if initial is None or not iterable(initial):
        return False

    return any(iterable(item) for item in initial)


def arms(n_samples, log_pdf, lower, upper, initial=None, n_initial=10, convexity=0., max_points=100,
         metropolis=False, x_previous=None, args=(), include_n_evaluations=False, rng=None):
    """
    Draw C{n_samples} samples with adaptive rejection Metropolis sampling.

    If all parameters are scalars (and C{initial} is a flat list), a single
    sampler produces all samples and its envelope is refined along the way.
    Parameters can also be given as sequences, one value per sample; shorter
    sequences are recycled. In that case every sample comes from its own,
    freshly built sampler.

    @param n_samples: number of samples to return
    @type n_samples: int
    @param log_pdf: log-density, or a sequence of them
    @type log_pdf: callable
    @param lower: lower bound(s) of the support
    @param upper: upper bound(s) of the support
    @param initial: initial points, or a sequence of such lists; defaults to
                    C{n_initial} points evenly spaced in the support
    @param n_initial: number of default initial points
    @type n_initial: int
    @param convexity: convexity adjustment(s)
    @param max_points: maximum envelope size(s)
    @param metropolis: whether to use the Metropolis step
    @param x_previous: previous value(s) of the Markov chain
    @param args: extra arguments passed to each C{log_pdf}
    @type args: tuple
    @param include_n_evaluations: if True, return a L{SamplingResult}
    @type include_n_evaluations: bool
    @param rng: source of uniform random numbers

    @rtype: numpy array or L{SamplingResult}
    """
    params = (log_pdf, lower, upper, convexity, max_points, metropolis, x_previous)
    nested = _nested(initial)

    if not nested and not any(iterable(p) for p in params):

        if initial is None:
            initial = default_initial_points(lower, upper, n_initial)

        sampler = ARMS(log_pdf, lower, upper, initial, convexity, max_points,
                       metropolis, x_previous, args)

        samples = sampler.sample(n_samples, rng)
        n_evaluations = sampler.n_evaluations

    else:
        samples = numpy.empty(n_samples)
        n_evaluations = 0

        for i in range(n_samples):

            lo, up = recycle(lower, i), recycle(upper, i)

            if nested:
                points = recycle(initial, i)
            elif initial is None:
                points = default_initial_points(lo, up, n_initial)
            else:
                points = initial

            sampler = ARMS(recycle(log_pdf, i), lo, up, points,
                           recycle(convexity, i), recycle(max_points, i), recycle(metropolis, i),
                           recycle(x_previous, i), args)

            samples[i] = sampler.draw(rng)
            n_evaluations += sampler.n_evaluations

    if include_n_evaluations:
        return SamplingResult(samples, n_evaluations)
    else:
        return samples
