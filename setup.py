from setuptools import setup


def readme():
    with open("README.rst") as readme_file:
        return readme_file.read()


def get_extras_require():
    extras = [
        "pandas >= 0.20.0",
        "coverage >= 4.5.3",
        "flake8 >= 3.7.7",
        "flake8-docstrings >= 1.5.0",
        "black >= 19.3b0",
        "pytest >= 4.4.1",
    ]

    return extras


configuration = {
    "name": "mpcore",
    "version": "0.1.0",
    "python_requires": ">=3.9",
    "description": (
        "Numerically stable rolling statistics, anytime ordering, and "
        "load-balanced diagonal batching for matrix profile computations"
    ),
    "long_description_content_type": "text/x-rst",
    "long_description": readme(),
    "classifiers": [
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Programming Language :: Python",
        "Topic :: Software Development",
        "Topic :: Scientific/Engineering",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
    ],
    "keywords": "time series matrix profile rolling statistics parallel",
    "license": "3-clause BSD License",
    "packages": ["mpcore"],
    "install_requires": ["numpy >= 1.22", "numba >= 0.57"],
    "ext_modules": [],
    "cmdclass": {},
    "tests_require": ["pytest"],
    "data_files": (),
    "extras_require": {"ci": get_extras_require()},
}

setup(**configuration)
