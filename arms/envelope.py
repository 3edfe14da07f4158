"""
Piecewise linear envelope of a univariate log-density.

The L{Envelope} is an ordered chain of L{Knot}s spanning the support
M{[lower, upper]} of the density. Knots alternate between points evaluated
on the log-density and intersection points, where the chords through
neighbouring evaluated points meet. Linear interpolation between successive
knots defines an upper bounding function of a concave log-density; its
exponential can be integrated in closed form and inverted, which is how
candidate points are proposed:

    >>> envelope = Envelope(-10., 10., x, logp(x))
    >>> envelope.intersect()
    'ok'
    >>> envelope.cumulate()
    >>> point = envelope.invert(numpy.random.random())
    >>> point.x
    0.4188...

Knots live in an arena (a plain list) and refer to their neighbours by
index. New knots are always appended, so an index remains valid for the
lifetime of the envelope.
"""

import numpy

from arms.numeric import YEPS, EYEPS, XEPS, expshift, logshift
from arms.core import InternalConsistencyError, PointOutsideIntervalError


class Geometry(object):
    """
    Enumeration of the outcomes of an envelope update.
    """

    OK = 'ok'
    VIOLATION = 'violation'


class Knot(object):
    """
    A point of the envelope.

    @param x: position
    @type x: float
    @param y: log-density value (evaluated knots) or envelope height
              (intersection knots)
    @type y: float
    @param evaluated: True if C{y} is a log-density evaluation
    @type evaluated: bool
    @param left: arena index of the left neighbour, None at the chain start
    @type left: int
    @param right: arena index of the right neighbour, None at the chain end
    @type right: int
    """

    __slots__ = ('x', 'y', 'ey', 'cum', 'evaluated', 'left', 'right')

    def __init__(self, x, y=0., evaluated=False, left=None, right=None):

        self.x = float(x)
        self.y = float(y)
        self.ey = 0.
        self.cum = 0.
        self.evaluated = bool(evaluated)
        self.left = left
        self.right = right

    def __repr__(self):
        return '<{0.__class__.__name__}: x={0.x}, y={0.y}, evaluated={0.evaluated}>'.format(self)


class WorkingPoint(Knot):
    """
    Candidate point proposed by L{Envelope.invert}, not (yet) part of the
    envelope. C{left} and C{right} are the knots bracketing the candidate.
    """
    pass


class Envelope(object):
    """
    Envelope of a univariate log-density for adaptive rejection (Metropolis)
    sampling.

    The constructor only lays out the chain of knots: the boundaries, the
    evaluated points and one (not yet positioned) intersection knot between
    each pair of them. Call L{intersect} and then L{cumulate} to obtain a
    usable envelope.

    @param lower: lower bound of the support
    @type lower: float
    @param upper: upper bound of the support
    @type upper: float
    @param x: ordered positions of the evaluated points
    @type x: iterable of float
    @param y: log-density values at C{x}
    @type y: iterable of float
    @param convexity: convexity adjustment (>= 0)
    @type convexity: float
    @param max_points: maximum number of knots in the envelope
    @type max_points: int
    @param metropolis: if True, convexity violations are tolerated and
                       corrected, otherwise they are reported
    @type metropolis: bool
    """

    def __init__(self, lower, upper, x, y, convexity=0., max_points=100, metropolis=False):

        self._knots = []
        self._convexity = float(convexity)
        self._max_points = int(max_points)
        self._metropolis = bool(metropolis)
        self._y_max = 0.

        self._knots.append(Knot(lower))

        for xi, yi in zip(x, y):
            self._append(Knot(xi, yi, evaluated=True))
            self._append(Knot(xi))

        # the last intersection knot is replaced by the upper bound
        self._knots[-1].x = float(upper)

        self._head = 0
        self._tail = len(self._knots) - 1

    def _append(self, knot):

        index = len(self._knots)
        knot.left = index - 1
        self._knots[index - 1].right = index
        self._knots.append(knot)

    def __len__(self):
        return len(self._knots)

    def __iter__(self):

        index = self._head

        while index is not None:
            knot = self._knots[index]
            yield knot
            index = knot.right

    def __getitem__(self, index):
        return self._knots[index]

    @property
    def knots(self):
        """
        Knots in the order of the chain.
        @rtype: list of L{Knot}
        """
        return list(self)

    @property
    def x(self):
        return numpy.array([knot.x for knot in self])

    @property
    def y(self):
        return numpy.array([knot.y for knot in self])

    @property
    def evaluated(self):
        return numpy.array([knot.evaluated for knot in self])

    @property
    def lower(self):
        return self._knots[self._head].x

    @property
    def upper(self):
        return self._knots[self._tail].x

    @property
    def y_max(self):
        """
        Largest envelope height, reference of the shifted exponentiation.
        @rtype: float
        """
        return self._y_max

    @property
    def total(self):
        """
        Area under the exponentiated envelope (in shifted units).
        @rtype: float
        """
        return self._knots[self._tail].cum

    @property
    def max_points(self):
        return self._max_points

    @property
    def full(self):
        """
        True if there is no room for another pair of knots. Insertion stops
        once the envelope holds more than C{max_points - 2} knots, so an odd
        C{max_points} can be filled exactly.
        """
        return len(self._knots) > self._max_points - 2

    def _walk(self, index, steps):
        """
        Index of the knot C{steps} positions to the right of C{index} (to
        the left if C{steps} is negative), or None if the chain ends first.
        """
        for _ in range(abs(steps)):
            if index is None:
                return None
            if steps < 0:
                index = self._knots[index].left
            else:
                index = self._knots[index].right

        return index

    def intersect(self):
        """
        Position all intersection knots, including the two boundaries.

        @return: L{Geometry.VIOLATION} if the log-density was found to be
                 convex somewhere and Metropolis correction is disabled
        """
        index = self._head

        while index is not None:
            if self.meet(index) == Geometry.VIOLATION:
                return Geometry.VIOLATION
            index = self._walk(index, 2)

        return Geometry.OK

    def meet(self, index):
        """
        Compute the position and height of the intersection knot C{index}
        from the chords through its evaluated neighbours.

        @param index: arena index of an intersection (or boundary) knot
        @type index: int

        @rtype: str
        @raise PointOutsideIntervalError: if rounding places the
                                          intersection outside its interval
        """
        k = self._knots
        q = k[index]

        if q.evaluated:
            raise InternalConsistencyError('Knot {0} is not an intersection'.format(index))

        gl = gr = grl = dl = dr = 0.

        outer_left = self._walk(index, -3)
        outer_right = self._walk(index, 3)

        il = outer_left is not None
        ir = outer_right is not None
        irl = q.left is not None and q.right is not None

        if il:
            left, far = k[q.left], k[outer_left]
            gl = (left.y - far.y) / (left.x - far.x)
        if ir:
            right, far = k[q.right], k[outer_right]
            gr = (right.y - far.y) / (right.x - far.x)
        if irl:
            left, right = k[q.left], k[q.right]
            grl = (right.y - left.y) / (right.x - left.x)

        if irl and il and gl < grl:
            # convexity on the left exceeds the threshold
            if not self._metropolis:
                return Geometry.VIOLATION
            gl = gl + (1.0 + self._convexity) * (grl - gl)

        if irl and ir and gr > grl:
            # convexity on the right exceeds the threshold
            if not self._metropolis:
                return Geometry.VIOLATION
            gr = gr + (1.0 + self._convexity) * (grl - gr)

        if il and irl:
            dr = max((gl - grl) * (k[q.right].x - k[q.left].x), YEPS)

        if ir and irl:
            dl = max((grl - gr) * (k[q.right].x - k[q.left].x), YEPS)

        if il and ir and irl:
            left, right = k[q.left], k[q.right]
            q.x = (dl * right.x + dr * left.x) / (dl + dr)
            q.y = (dl * right.y + dr * left.y + dl * dr) / (dl + dr)
        elif il and irl:
            # no chord on the right: the right neighbour is the last evaluated point
            q.x = k[q.right].x
            q.y = k[q.right].y + dr
        elif ir and irl:
            q.x = k[q.left].x
            q.y = k[q.left].y + dl
        elif il:
            # upper bound
            left = k[q.left]
            q.y = left.y + gl * (q.x - left.x)
        elif ir:
            # lower bound
            right = k[q.right]
            q.y = right.y - gr * (right.x - q.x)
        else:
            raise InternalConsistencyError('No chord gradient on either side of knot {0}'.format(index))

        if (q.left is not None and q.x < k[q.left].x) or \
           (q.right is not None and q.x > k[q.right].x):
            raise PointOutsideIntervalError('Intersection {0} outside its interval'.format(q.x))

        return Geometry.OK

    def area(self, index):
        """
        Integral of the exponentiated envelope over the segment to the left
        of knot C{index}.

        @rtype: float
        """
        q = self._knots[index]

        if q.left is None:
            raise InternalConsistencyError('The first knot has no segment to its left')

        p = self._knots[q.left]

        if p.x == q.x:
            return 0.
        elif abs(q.y - p.y) < YEPS:
            # nearly flat: trapezoid rule avoids cancellation
            return 0.5 * (q.ey + p.ey) * (q.x - p.x)
        else:
            return ((q.ey - p.ey) / (q.y - p.y)) * (q.x - p.x)

    def areas(self):
        """
        Areas of all segments, in chain order.
        @rtype: numpy array
        """
        areas = []
        index = self._knots[self._head].right

        while index is not None:
            areas.append(self.area(index))
            index = self._knots[index].right

        return numpy.array(areas)

    def cumulate(self):
        """
        Exponentiate and integrate the envelope.
        """
        self._y_max = max(knot.y for knot in self)

        for knot in self:
            knot.ey = expshift(knot.y, self._y_max)

        head = self._knots[self._head]
        head.cum = 0.
        index = head.right

        while index is not None:
            q = self._knots[index]
            q.cum = self._knots[q.left].cum + self.area(index)
            index = q.right

    def invert(self, probability):
        """
        Find the point at which the normalised integral of the exponentiated
        envelope reaches C{probability}.

        @param probability: cumulative probability, in [0, 1]
        @type probability: float

        @rtype: L{WorkingPoint}
        @raise PointOutsideIntervalError: if rounding places the point
                                          outside its segment
        """
        k = self._knots
        index = self._tail
        u = probability * k[index].cum

        while k[k[index].left].cum > u:
            index = k[index].left

        q = k[index]
        p = k[q.left]

        point = WorkingPoint(q.x, left=q.left, right=index)
        point.cum = u

        if p.x == q.x:
            # zero length segment
            point.y = q.y
            point.ey = q.ey
            return point

        xl, xr = p.x, q.x
        yl, yr = p.y, q.y
        eyl, eyr = p.ey, q.ey

        span = q.cum - p.cum
        if span > 0.:
            prop = (u - p.cum) / span
        else:
            prop = 0.

        linear = abs(yr - yl) < YEPS

        if prop <= 0.:
            x = xl
        elif prop >= 1.:
            x = xr
        elif linear:
            if abs(eyr - eyl) > EYEPS * abs(eyr + eyl):
                x = xl + ((xr - xl) / (eyr - eyl)) * \
                    (-eyl + numpy.sqrt((1. - prop) * eyl * eyl + prop * eyr * eyr))
            else:
                x = xl + (xr - xl) * prop
        else:
            x = xl + ((xr - xl) / (yr - yl)) * \
                (-yl + logshift((1. - prop) * eyl + prop * eyr, self._y_max))

        x = float(x)

        if x < xl or x > xr:
            raise PointOutsideIntervalError('Sampled point {0} outside [{1}, {2}]'.format(x, xl, xr))

        point.x = x

        if linear:
            point.ey = ((x - xl) / (xr - xl)) * (eyr - eyl) + eyl
            point.y = logshift(point.ey, self._y_max)
        else:
            point.y = ((x - xl) / (xr - xl)) * (yr - yl) + yl
            point.ey = expshift(point.y, self._y_max)

        return point

    def insert(self, point, evaluate):
        """
        Incorporate an evaluated candidate into the envelope, together with
        a new intersection knot, then update the affected intersections and
        re-integrate.

        @param point: candidate with its log-density value set
        @type point: L{WorkingPoint}
        @param evaluate: log-density, used when the new knot has to be moved
                         away from its neighbours
        @type evaluate: callable

        @return: L{Geometry.VIOLATION} if the new knot reveals convexity and
                 Metropolis correction is disabled. The envelope is then left
                 partially updated and must not be sampled from any further.
        @rtype: str
        """
        k = self._knots

        if not point.evaluated or self.full:
            return Geometry.OK

        left, right = k[point.left], k[point.right]
        qi, mi = len(k), len(k) + 1

        q = Knot(point.x, point.y, evaluated=True)
        m = Knot(point.x)

        if left.evaluated and not right.evaluated:
            # new intersection between the left neighbour and q
            m.left, m.right = point.left, qi
            q.left, q.right = mi, point.right
            left.right = mi
            right.left = qi
        elif not left.evaluated and right.evaluated:
            # new intersection between q and the right neighbour
            q.left, q.right = point.left, mi
            m.left, m.right = qi, point.right
            left.right = qi
            right.left = mi
        else:
            raise InternalConsistencyError('Candidate is not bracketed by one evaluated knot')

        k.append(q)
        k.append(m)

        # keep q away from the neighbouring evaluated points
        ql = k[q.left].left if k[q.left].left is not None else q.left
        qr = k[q.right].right if k[q.right].right is not None else q.right
        xl, xr = k[ql].x, k[qr].x

        if q.x < (1. - XEPS) * xl + XEPS * xr:
            q.x = (1. - XEPS) * xl + XEPS * xr
            q.y = evaluate(q.x)
        elif q.x > XEPS * xl + (1. - XEPS) * xr:
            q.x = XEPS * xl + (1. - XEPS) * xr
            q.y = evaluate(q.x)

        affected = [q.left, q.right]
        if k[q.left].left is not None:
            affected.append(self._walk(qi, -3))
        if k[q.right].right is not None:
            affected.append(self._walk(qi, 3))

        for index in affected:
            if index is not None and self.meet(index) == Geometry.VIOLATION:
                return Geometry.VIOLATION

        self.cumulate()

        return Geometry.OK

    def bracket(self, x):
        """
        Indices of the two consecutive knots enclosing C{x}.

        @rtype: tuple of int
        """
        if not self.lower <= x <= self.upper:
            raise ValueError('{0} outside [{1}, {2}]'.format(x, self.lower, self.upper))

        k = self._knots
        index = self._head

        while k[k[index].right].x < x:
            index = k[index].right

        return index, k[index].right

    def _interpolate(self, left, right, x):

        p, q = self._knots[left], self._knots[right]

        if q.x == p.x:
            return p.y

        w = (x - p.x) / (q.x - p.x)

        return p.y + w * (q.y - p.y)

    def squeeze(self, point):
        """
        Lower bound of a concave log-density at a candidate point, obtained
        from the chord through the nearest evaluated knots.

        @return: the squeezing value, or None if the candidate lies next to
                 a boundary
        @rtype: float
        """
        k = self._knots
        left, right = k[point.left], k[point.right]

        if left.left is None or right.right is None:
            return None

        ql = k[point.left] if left.evaluated else k[left.left]
        qr = k[point.right] if right.evaluated else k[right.right]

        return (qr.y * (point.x - ql.x) + ql.y * (qr.x - point.x)) / (qr.x - ql.x)

    def u(self, x):
        """
        Piecewise linear upper bounding function.
        """
        if not self.lower <= x <= self.upper:
            return -numpy.inf

        return self._interpolate(*self.bracket(x), x=x)

    def l(self, x):
        """
        Piecewise linear lower bounding function (the squeeze).
        """
        if not self.lower <= x <= self.upper:
            return -numpy.inf

        left, right = self.bracket(x)
        point = WorkingPoint(x, left=left, right=right)
        y = self.squeeze(point)

        if y is None:
            return -numpy.inf
        return y
