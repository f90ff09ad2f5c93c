#! /usr/bin/env python

import os
from setuptools import setup

# Deduce the version from the __init__.py file:
version = None
with open(os.path.join(os.path.dirname(__file__), 'neuroprox', '__init__.py'), 'r') as fid:
    for line in (line.strip() for line in fid):
        if line.startswith('__version__'):
            version = line.split('=')[1].strip().strip('\'')
            break
if version is None: raise ValueError('No version found in neuroprox/__init__.py!')

setup(
    name='neuroprox',
    version=version,
    description='Radial and cylindrical proximity queries of 3D points with split processing',
    keywords='geometry proximity cylinder kdtree mesh parallel',
    long_description='''
                     Finds the points of a 3D point set that lie within a radius of search
                     points or within search cylinders, optionally splitting the queries into
                     subsets that are processed on a pool of worker threads.
                     ''',
    license='GPLv3',
    classifiers=['Development Status :: 3 - Alpha',
                 'Intended Audience :: Science/Research',
                 'Intended Audience :: Developers',
                 'License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)',
                 'Programming Language :: Python :: 3',
                 'Topic :: Software Development',
                 'Topic :: Software Development :: Libraries',
                 'Topic :: Software Development :: Libraries :: Python Modules',
                 'Topic :: Scientific/Engineering',
                 'Topic :: Scientific/Engineering :: Information Analysis',
                 'Operating System :: Microsoft :: Windows',
                 'Operating System :: POSIX',
                 'Operating System :: Unix',
                 'Operating System :: MacOS'],
    packages=['neuroprox',
              'neuroprox.util',
              'neuroprox.split',
              'neuroprox.geometry',
              'neuroprox.commands',
              'neuroprox.test'],
    python_requires='>=3.7',
    install_requires=['numpy>=1.17',
                      'scipy>=1.1',
                      'pyrsistent>=0.11',
                      'pimms>=0.3.20'],
    extras_require={
        'test': ['pytest']})
