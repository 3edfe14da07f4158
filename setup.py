from setuptools import setup, find_packages
from io import open

try:
    __doc__ = open('README.rst', encoding="utf-8").read()
except IOError:
    __doc__ = ""


NAME = "arms"
AUTHOR = "ARMS developers"
EMAIL = "arms-devel@users.noreply.github.com"
URL = "http://github.com/arms-sampler"
SUMMARY = "Adaptive Rejection Metropolis Sampling"
DESCRIPTION = __doc__
LICENSE = 'MIT'

REQUIREMENTS = open("requirements.txt", encoding="utf-8").readlines()
DEV_REQUIREMENTS = ["pytest"]

v = {}
exec(open(NAME + "/__init__.py", encoding="utf-8").read(), v)
VERSION = v["Version"]()


def build():

    return setup(
        name=NAME,
        packages=find_packages(),
        include_package_data=True,
        version=VERSION.short,
        author=AUTHOR,
        author_email=EMAIL,
        url=URL,
        description=SUMMARY,
        long_description=DESCRIPTION,
        license=LICENSE,
        install_requires=REQUIREMENTS,
        tests_require=DEV_REQUIREMENTS,
        extras_require={
            'dev': DEV_REQUIREMENTS
        },
        test_suite="arms.test.cases",
        entry_points={
            'console_scripts': [
                'arms-test = arms.test.app:main'
            ]
        },
        classifiers=(
            'Development Status :: 4 - Beta',
            'Intended Audience :: Developers',
            'Intended Audience :: Science/Research',
            'License :: OSI Approved :: MIT License',
            'Operating System :: OS Independent',
            'Programming Language :: Python',
            'Programming Language :: Python :: 3.8',
            'Programming Language :: Python :: 3.9',
            'Programming Language :: Python :: 3.10',
            'Programming Language :: Python :: 3.11',
            'Programming Language :: Python :: 3.12',
            'Topic :: Scientific/Engineering',
            'Topic :: Scientific/Engineering :: Mathematics',
            'Topic :: Software Development :: Libraries'
        )
    )


if __name__ == '__main__':
    build()
