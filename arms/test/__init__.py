"""
This is a top level package, hosting the entire ARMS test framework. It is
divided into two parts:

    - test cases, located under arms.test.cases
    - test console, in C{/arms/test/app.py}

This module, arms.test, contains all the glue-code functions, classes and
decorators you would need in order to write tests for ARMS.

    1. Tree

       All test modules must be placed in the root package: arms.test.cases.
       There is a strict naming convention for test modules: the name of a
       test module should be the same as the name of the ARMS module it
       tests. For example, if you are writing tests for C{arms/envelope.py},
       the test module must be C{arms/test/cases/envelope.py}.

    2. Writing Tests

       Writing a test is easy. All you need is to import arms.test and then
       create your own test cases, derived from L{arms.test.Case}:

           >>> import arms.test
           >>> @arms.test.unit
               class TestSomeClass(arms.test.Case):
                   def setUp(self):
                       super(TestSomeClass, self).setUp()
                       # do something with self.rng
                   def testSomeMethod(self):
                       self.assertEqual(a, b)

       All test cases get a seeded random number generator in C{self.rng};
       use it (rather than the global numpy state) whenever a test draws
       random numbers, so that every run is reproducible.

       Regression tests are created in response to reported bugs. Mark each
       test method with a short description of the bug in its docstring:

           >>> @arms.test.regression
               class SomeClassRegressions(arms.test.Case)
                   def testSomeFeature(self)
                   \"""
                   @see: candidate sitting exactly on an evaluated knot
                   \"""
                   # regression test body...

    3. Style Guide:

       - name test case modules as already described
       - group tests in arms.test.Case-s and name them properly
       - prefix test methods with "test", like "testInvert" - very important
       - use camelCase for methods and variables. This applies to all the
         code under arms.test and does not apply to the rest of the library!
       - use arms.test decorators to mark tests as unit, functional or
         regression tests
       - make every test module executable::

           if __name__ == '__main__':
               arms.test.Console()   # Discovers and runs all test cases in the module

    4. Test Execution

       Test discovery is handled by C{test builders} and a test runner
       C{app}. Test builders are subclasses of L{AbstractTestBuilder}. For
       every test type (unit, functional, regression) there is a
       corresponding test builder. L{AnyTestBuilder} is a special builder
       which scans for all of them at the same time.

       The simplest way to execute a test suite is to use the test app
       (C{arms/test/app.py}, installed as C{arms-test}), which is simply an
       instance of L{arms.test.Console}::

           $ python -m arms.test.app --help

       The app has two main arguments:

           - test type - tells the app which TestBuilder to use for test
             discovery ("any" triggers L{AnyTestBuilder}, "unit" -
             L{UnitTestBuilder}, etc.)
           - test namespaces - a list of "dotted" test modules, for example::

                arms.test.cases.*          # all test modules
                arms.test.cases.envelope   # only envelope
                .                          # current module

       The test cases are regular unittest test cases, so any unittest
       compatible runner (pytest included) can execute them as well.
"""

import os
import sys
import getopt
import unittest
import importlib.util

import numpy.random

import arms.core

from abc import ABCMeta, abstractproperty


class Attributes(object):

    UNIT       = '__ARMSUnitTest__'
    FUNCTIONAL = '__ARMSFunctionalTest__'
    REGRESSION = '__ARMSRegressionTest__'


class Case(unittest.TestCase):
    """
    Base class, defining an ARMS Test Case. Provides a default implementation
    of C{unittest.TestCase.setUp} which creates a seeded random number
    generator in C{self.rng}.
    """

    SEED = 20121

    @property
    def rng(self):
        """
        Seeded source of random numbers
        @rtype: C{numpy.random.RandomState}
        """
        return self.__rng

    def setUp(self):
        """
        Provide a fresh, seeded random number generator in C{self.rng}.
        """
        self.__rng = numpy.random.RandomState(self.SEED)

    def assertAlmostEqual(self, first, second, places=None, msg=None, delta=None):

        if first == second:
            return
        if delta is not None and places is not None:
            raise TypeError("specify delta or places not both")

        if delta is not None:

            if abs(first - second) <= delta:
                return

            m = '{0} != {1} within {2} delta'.format(first, second, delta)
            msg = self._formatMessage(msg, m)

            raise self.failureException(msg)

        else:
            if places is None:
                places = 7

            return super(Case, self).assertAlmostEqual(first, second, places=places, msg=msg)

    def assertWithinDelta(self, first, second, delta=1e-7, msg=None):
        """
        Fail if C{first} and C{second} differ by more than C{delta}.
        """
        return self.assertAlmostEqual(first, second, delta=delta, msg=msg)


class InvalidNamespaceError(ImportError):
    pass


class AbstractTestBuilder(object, metaclass=ABCMeta):
    """
    This is a base class, defining a test loader which exposes the C{loadTests}
    method.

    Subclasses must override the C{labels} abstract property, which controls
    what kind of test cases are loaded by the test builder.
    """

    @abstractproperty
    def labels(self):
        pass

    def loadFromFile(self, file):
        """
        Load L{arms.test.Case}s from a module file.

        @param file: test module file name
        @type file: str

        @return: a C{unittest.TestSuite} ready for the test runner
        @rtype: C{unittest.TestSuite}
        """
        mod = self._loadSource(file)
        suite = unittest.TestLoader().loadTestsFromModule(mod)
        return unittest.TestSuite(self._filter(suite))

    def loadTests(self, namespace):
        """
        Load L{arms.test.Case}s from the given C{namespace}. If the namespace
        ends with a wildcard, tests from sub-packages will be loaded as well.
        If the namespace is '__main__' or '.', tests are loaded from __main__.

        @param namespace: test module namespace, e.g. 'arms.test.cases.envelope'
                          will load tests from '/arms/test/cases/envelope.py'
        @type namespace: str

        @return: a C{unittest.TestSuite} ready for the test runner
        @rtype: C{unittest.TestSuite}
        """
        if namespace.strip() == '.*':
            namespace = '__main__.*'
        elif namespace.strip() == '.':
            namespace = '__main__'

        if namespace.endswith('.*'):
            return self.loadAllTests(namespace[:-2])
        else:
            self._checkNamespace(namespace)

            loader = unittest.TestLoader()
            tests = loader.loadTestsFromName(namespace)
            return unittest.TestSuite(self._filter(tests))

    def loadMultipleTests(self, namespaces):
        """
        Load L{arms.test.Case}s from a list of given C{namespaces}.

        @param namespaces: a list of test module namespaces
        @type namespaces: tuple of str

        @return: a C{unittest.TestSuite} ready for the test runner
        @rtype: C{unittest.TestSuite}
        """
        if not arms.core.iterable(namespaces):
            raise TypeError(namespaces)

        return unittest.TestSuite(self.loadTests(n) for n in namespaces)

    def loadAllTests(self, namespace, extension='.py'):
        """
        Load L{arms.test.Case}s recursively from the given C{namespace} and
        all of its sub-packages. Same as::

            builder.loadTests('namespace.*')

        @param namespace: test module namespace, e.g. 'arms.test.cases' will
                          load tests from /arms/test/cases/*'
        @type namespace: str

        @return: a C{unittest.TestSuite} ready for the test runner
        @rtype: C{unittest.TestSuite}
        """
        suites = []

        try:
            base = __import__(namespace, level=0, fromlist=['']).__file__
        except ImportError:
            raise InvalidNamespaceError('Namespace {0} is not importable'.format(namespace))

        if os.path.splitext(os.path.basename(base))[0] != '__init__':
            suites.append(self.loadTests(namespace))

        else:

            for entry in os.walk(os.path.dirname(base)):

                for item in sorted(entry[2]):
                    file = os.path.join(entry[0], item)
                    if extension and item.endswith(extension):
                        suites.append(self.loadFromFile(file))

        return unittest.TestSuite(suites)

    def _checkNamespace(self, namespace):
        """
        Fail if no leading part of C{namespace} can be imported. Deeper names
        (test case classes or methods) are resolved by C{unittest}.
        """
        if namespace == '__main__':
            return

        parts = namespace.split('.')

        for i in range(len(parts), 0, -1):
            try:
                __import__('.'.join(parts[:i]), level=0)
            except ImportError:
                continue
            return

        raise InvalidNamespaceError('Namespace {0} is not importable'.format(namespace))

    def _loadSource(self, path):
        """
        Import and return the Python module identified by C{path}.

        @note: each file is loaded under a name derived from its full path,
               so that two test modules with the same base name do not
               replace each other in C{sys.modules}.
        """
        name = os.path.splitext(os.path.abspath(path))[0]
        name = name.strip(os.path.sep).replace(os.path.sep, '_').replace('.', '-')

        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        return module

    def _recurse(self, obj):
        """
        Extract test cases recursively from a test C{obj} container.
        """
        cases = []
        if isinstance(obj, unittest.TestSuite) or arms.core.iterable(obj):
            for item in obj:
                cases.extend(self._recurse(item))
        else:
            cases.append(obj)
        return cases

    def _filter(self, tests):
        """
        Filter a list of objects using C{self.labels}.
        """
        filtered = []

        for test in self._recurse(tests):
            for label in self.labels:
                if hasattr(test, label) and getattr(test, label) is True:
                    filtered.append(test)
                    break

        return filtered


class AnyTestBuilder(AbstractTestBuilder):
    """
    Build a test suite of cases, marked as either unit, functional or regression
    tests. For detailed documentation see L{AbstractTestBuilder}.
    """
    @property
    def labels(self):
        return [Attributes.UNIT, Attributes.FUNCTIONAL, Attributes.REGRESSION]

class UnitTestBuilder(AbstractTestBuilder):
    """
    Build a test suite of cases, marked as unit tests.
    For detailed documentation see L{AbstractTestBuilder}.
    """
    @property
    def labels(self):
        return [Attributes.UNIT]

class FunctionalTestBuilder(AbstractTestBuilder):
    """
    Build a test suite of cases, marked as functional tests.
    For detailed documentation see L{AbstractTestBuilder}.
    """
    @property
    def labels(self):
        return [Attributes.FUNCTIONAL]

class RegressionTestBuilder(AbstractTestBuilder):
    """
    Build a test suite of cases, marked as regression tests.
    For detailed documentation see L{AbstractTestBuilder}.
    """
    @property
    def labels(self):
        return [Attributes.REGRESSION]


def _label(klass, attribute):

    if not isinstance(klass, type):
        raise TypeError("Can't apply class decorator on {0}".format(type(klass)))

    setattr(klass, attribute, True)
    return klass

def unit(klass):
    """
    A class decorator, used to label unit test cases.

    @param klass: a C{unittest.TestCase} class type
    @type klass: type
    """
    return _label(klass, Attributes.UNIT)

def functional(klass):
    """
    A class decorator, used to label functional test cases.

    @param klass: a C{unittest.TestCase} class type
    @type klass: type
    """
    return _label(klass, Attributes.FUNCTIONAL)

def regression(klass):
    """
    A class decorator, used to label regression test cases.

    @param klass: a C{unittest.TestCase} class type
    @type klass: type
    """
    return _label(klass, Attributes.REGRESSION)

class Console(object):
    """
    Build and run all tests of the specified namespace and kind.

    @param namespace: a dotted name, which specifies the test module
                      (see L{arms.test.AbstractTestBuilder.loadTests})
    @type namespace: str
    @param builder: test builder to use
    @type builder: any L{arms.test.AbstractTestBuilder} subclass
    @param verbosity: verbosity level for C{unittest.TestRunner}
    @type verbosity: int
    """

    BUILDERS = {'unit': UnitTestBuilder, 'functional': FunctionalTestBuilder,
                'any': AnyTestBuilder, 'regression': RegressionTestBuilder}

    USAGE = r"""
ARMS Test Runner Console. Usage:

     python {0.program} [-t type] [-v verbosity] namespace(s)

Options:
      namespace(s)       A list of ARMS test dotted namespaces, from which to
                         load tests. '__main__' and '.' are interpreted as the
                         current module. If a namespace ends with an asterisk
                         '.*', all sub-packages will be scanned as well.

                         Examples:
                             "arms.test.cases.*"
                             "arms.test.cases.envelope" "arms.test.cases.sampler"
                             "."

      -t  type           Type of tests to load from each namespace. Possible
                         values are:
                             {0.builders}

      -v  verbosity      Verbosity level passed to unittest.TextTestRunner.
    """

    def __init__(self, namespace=('__main__',), builder=AnyTestBuilder, verbosity=1, argv=None):

        if not argv:
            argv = sys.argv

        self._namespace = None
        self._builder = None
        self._verbosity = 1
        self._program = os.path.basename(argv[0])
        self._result = None

        self.namespace = namespace
        self.builder = builder
        self.verbosity = verbosity

        self.parseArguments(argv[1:])
        self.run()

    @property
    def namespace(self):
        return self._namespace
    @namespace.setter
    def namespace(self, value):
        if arms.core.iterable(value):
            self._namespace = list(value)
        else:
            self._namespace = [value]

    @property
    def builder(self):
        return self._builder
    @builder.setter
    def builder(self, value):
        self._builder = value

    @property
    def verbosity(self):
        return self._verbosity
    @verbosity.setter
    def verbosity(self, value):
        self._verbosity = value

    @property
    def builders(self):
        return ', '.join(Console.BUILDERS)

    @property
    def program(self):
        return self._program

    @property
    def result(self):
        """
        Outcome of the last run
        @rtype: C{unittest.TestResult}
        """
        return self._result

    def run(self):

        builder = self.builder()
        suite = builder.loadMultipleTests(self.namespace)

        runner = unittest.TextTestRunner(verbosity=self.verbosity)
        self._result = runner.run(suite)

    def exit(self, message=None, code=0, usage=True):

        if message:
            print(message)
        if usage:
            print(Console.USAGE.format(self))

        sys.exit(code)

    def parseArguments(self, argv):

        try:

            options, args = getopt.getopt(argv, 'ht:v:', ['help', 'type=', 'verbosity='])

            for option, value in options:
                if option in ('-h', '--help'):
                    self.exit(message=None, code=0)
                if option in ('-t', '--type'):
                    try:
                        self.builder = Console.BUILDERS[value]
                    except KeyError:
                        self.exit(message='E: Invalid test type "{0}".'.format(value), code=2)
                if option in ('-v', '--verbosity'):
                    try:
                        self.verbosity = int(value)
                    except ValueError:
                        self.exit(message='E: Verbosity must be an integer.', code=3)

            if len(args) > 0:
                self.namespace = list(args)

        except getopt.GetoptError as oe:
            self.exit(message='E: ' + str(oe), code=1)


if __name__ == '__main__':

    Console()
