"""
Ready-made log-densities.

Every L{LogDensity} is a callable returning the log of the probability
density at C{x}, so it can be handed directly to a sampler:

    >>> from arms.sampler import ARMS
    >>> pdf = Gamma(alpha=2., beta=1.)
    >>> ARMS(pdf, 1e-10, 50., [0.5, 1., 3.]).draw()
    1.3472...

L{Normal}, L{Gamma} (alpha >= 1) and L{Beta} (alpha, beta >= 1) are
log-concave; L{NormalMixture} generally is not and needs the Metropolis
step.
"""

import numpy
import scipy.special

from abc import ABCMeta, abstractmethod

from arms.numeric import log
from numpy import array, pi, sqrt


class LogDensity(object, metaclass=ABCMeta):
    """
    Log of a univariate probability density.
    """

    def __call__(self, x):
        return self.log_prob(x)

    @abstractmethod
    def log_prob(self, x):
        """
        Evaluate the log-density at C{x}.

        @type x: float or numpy array
        """
        pass


class Normal(LogDensity):

    def __init__(self, mu=0., sigma=1.):

        self._mu = None
        self._sigma = None

        self.mu = mu
        self.sigma = sigma

    @property
    def mu(self):
        return self._mu
    @mu.setter
    def mu(self, value):
        self._mu = float(value)

    @property
    def sigma(self):
        return self._sigma
    @sigma.setter
    def sigma(self, value):
        if value <= 0.:
            raise ValueError("Standard deviation sigma should be greater than 0")
        self._sigma = float(value)

    def log_prob(self, x):

        mu = self.mu
        sigma = self.sigma

        return log(1.0 / sqrt(2 * pi * sigma ** 2)) - (x - mu) ** 2 / (2 * sigma ** 2)


class Gamma(LogDensity):
    """
    Gamma density with shape C{alpha} and rate C{beta}.
    """

    def __init__(self, alpha=1., beta=1.):

        self._alpha = None
        self._beta = None

        self.alpha = alpha
        self.beta = beta

    @property
    def alpha(self):
        return self._alpha
    @alpha.setter
    def alpha(self, value):
        if value <= 0.:
            raise ValueError("Shape alpha should be greater than 0")
        self._alpha = float(value)

    @property
    def beta(self):
        return self._beta
    @beta.setter
    def beta(self, value):
        if value <= 0.:
            raise ValueError("Rate beta should be greater than 0")
        self._beta = float(value)

    def log_prob(self, x):

        a, b = self.alpha, self.beta

        return a * numpy.log(b) - scipy.special.gammaln(a) + (a - 1.) * log(x) - b * x


class Beta(LogDensity):

    def __init__(self, alpha=1., beta=1.):

        self._alpha = None
        self._beta = None

        self.alpha = alpha
        self.beta = beta

    @property
    def alpha(self):
        return self._alpha
    @alpha.setter
    def alpha(self, value):
        if value <= 0.:
            raise ValueError("Parameter alpha should be greater than 0")
        self._alpha = float(value)

    @property
    def beta(self):
        return self._beta
    @beta.setter
    def beta(self, value):
        if value <= 0.:
            raise ValueError("Parameter beta should be greater than 0")
        self._beta = float(value)

    def log_prob(self, x):

        a, b = self.alpha, self.beta

        return (a - 1.) * log(x) + (b - 1.) * log(1. - x) - scipy.special.betaln(a, b)


class NormalMixture(LogDensity):
    """
    Finite mixture of normal densities.

    @param weights: component weights (normalised internally)
    @param means: component means
    @param sigmas: component standard deviations
    """

    def __init__(self, weights, means, sigmas=1.):

        weights = array(weights, dtype=float).ravel()
        means = array(means, dtype=float).ravel()
        sigmas = array(sigmas, dtype=float).ravel() * numpy.ones(len(means))

        if len(weights) != len(means):
            raise ValueError('Need one weight per component')
        if numpy.any(weights < 0) or weights.sum() <= 0:
            raise ValueError('Weights must be non-negative and not all zero')
        if numpy.any(sigmas <= 0):
            raise ValueError('Standard deviations should be greater than 0')

        self._weights = weights / weights.sum()
        self._means = means
        self._sigmas = sigmas

    @property
    def weights(self):
        return self._weights.copy()

    @property
    def means(self):
        return self._means.copy()

    @property
    def sigmas(self):
        return self._sigmas.copy()

    @property
    def n_components(self):
        return len(self._means)

    def log_prob(self, x):

        x = numpy.asarray(x, dtype=float)
        z = numpy.subtract.outer(x, self._means) / self._sigmas

        terms = log(self._weights) - log(sqrt(2 * pi) * self._sigmas) - 0.5 * z ** 2

        return scipy.special.logsumexp(terms, axis=-1)
