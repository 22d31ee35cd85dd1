#!/usr/bin/env python3

from setuptools import setup

setup(
    name='pipebench',
    version='0.1.0',
    description='Benchmark tables for combinations of analysis methods',
    author='pipebench developers',

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Programming Language :: Python :: 3',
    ],
    packages=['pipebench'],
    python_requires='>=3.11',
    install_requires=[
        'joblib>=1.3',
        'matplotlib>=3.5',
        'numpy>=1.23',
        'pandas>=1.5',
        'regex'
    ],
    extras_require={
        'test': ['pytest']
    }
)
