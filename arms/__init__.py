"""
ARMS is a small, object-oriented library for drawing samples from univariate
distributions known only through their (unnormalised) log-density, using
Adaptive Rejection Metropolis Sampling.


Introduction
============

The library is composed of a handful of modules. Some of them are meant to be
directly used by the clients, while others are utility modules:

    1. Sampling API -- L{arms.sampler} hosts the L{ARMS<arms.sampler.ARMS>}
       sampler and the vectorised L{arms<arms.sampler.arms>} function,
       L{arms.gibbs} builds coordinate-wise (Gibbs) samplers on top of it.

    2. Envelope internals -- L{arms.envelope} contains the piecewise linear
       envelope of the log-density: its knots, the geometry of the chord
       intersections, integration and inversion.

    3. Utilities -- L{arms.numeric} (overflow-safe exponentiation),
       L{arms.core} (exception taxonomy) and L{arms.pdf} (ready-made
       log-densities).

    4. Test framework -- built on top of the standard unittest as a thin
       wrapping layer. See L{arms.test} for the details.


Getting started
===============

Any callable returning the log-density (up to an additive constant) can be
sampled from:

    >>> from arms.sampler import ARMS
    >>> sampler = ARMS(lambda x: -0.5 * x ** 2, -1000., 1000., [-2., 0., 2.])
    >>> sampler.draw()
    0.1795...
    >>> sampler.n_evaluations
    4

Each sampler keeps its envelope between draws, so successive draws become
cheaper. If the log-density is not concave, enable the Metropolis step:

    >>> sampler = ARMS(logp, -10., 10., [-3., 0., 3.], metropolis=True,
                       x_previous=0.)

For a quick vector of samples, use the L{arms<arms.sampler.arms>} function:

    >>> from arms.sampler import arms
    >>> arms(1000, lambda x: -0.5 * x ** 2, -10., 10.)


License
=======

ARMS is open source and distributed under OSI-approved MIT license::

    Copyright (c) 2026 ARMS developers

    Permission is hereby granted, free of charge, to any person obtaining
    a copy of this software and associated documentation files (the
    "Software"), to deal in the Software without restriction, including
    without limitation the rights to use, copy, modify, merge, publish,
    distribute, sublicense, and/or sell copies of the Software, and to
    permit persons to whom the Software is furnished to do so, subject to
    the following conditions:

    The above copyright notice and this permission notice shall be
    included in all copies or substantial portions of the Software.

    THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
    EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
    MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT.
    IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY
    CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION OF CONTRACT,
    TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE
    SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.

"""

__version__ = '0.3.0'


class Version(object):
    """
    ARMS version number.
    """

    def __init__(self):

        version = __version__.split('.')

        if not len(version) in (3, 4):
            raise ValueError(version)

        self._package = __name__

        self._major = version[0]
        self._minor = version[1]
        self._micro = version[2]
        self._revision = None

        if len(version) == 4:
            self._revision = version[3]

    def __str__(self):
        return self.short

    def __repr__(self):
        return '{0.package} {0.full}'.format(self)

    @property
    def major(self):
        """
        Major version (incompatible changes)
        @rtype: int
        """
        return int(self._major)

    @property
    def minor(self):
        """
        Minor version (compatible changes)
        @rtype: int
        """
        return int(self._minor)

    @property
    def micro(self):
        """
        Micro version (bug fixes)
        @rtype: int
        """
        return int(self._micro)

    @property
    def revision(self):
        """
        Build tag, if any
        @rtype: str or None
        """
        return self._revision

    @property
    def short(self):
        """
        Canonical three-part version number.
        """
        return '{0.major}.{0.minor}.{0.micro}'.format(self)

    @property
    def full(self):
        """
        Full version, including the build tag.
        """
        if self.revision is None:
            return self.short
        return '{0.major}.{0.minor}.{0.micro}.{0.revision}'.format(self)

    @property
    def package(self):
        return self._package
