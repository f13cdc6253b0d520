""" This file contains defines parameters for oempath that we use to fill
settings in setup.py and the top-level docstring.
"""

CLASSIFIERS = ["Development Status :: 3 - Alpha",
               "Environment :: Console",
               "Intended Audience :: Science/Research",
               "License :: OSI Approved :: BSD License",
               "Operating System :: OS Independent",
               "Programming Language :: Python",
               "Topic :: Scientific/Engineering"]

description  = 'Lasso paths by orthogonalizing EM (Python)'

# versions
NUMPY_MIN_VERSION = '1.22'
SCIPY_MIN_VERSION = '1.8'
PANDAS_MIN_VERSION = '1.4'
SKLEARN_MIN_VERSION = '1.1'
STATSMODELS_MIN_VERSION = '0.13'

NAME                = 'oempath'
VERSION             = '0.1.0'
MAINTAINER          = "oempath developers"
MAINTAINER_EMAIL    = ""
DESCRIPTION         = description
LONG_DESCRIPTION    = description
URL                 = ""
DOWNLOAD_URL        = ""
LICENSE             = "BSD license"
CLASSIFIERS         = CLASSIFIERS
AUTHOR              = "oempath developers"
AUTHOR_EMAIL        = ""
PLATFORMS           = "OS Independent"
STATUS              = 'alpha'
PROVIDES            = []
REQUIRES            = ["numpy>=%s" % NUMPY_MIN_VERSION,
                       "scipy>=%s" % SCIPY_MIN_VERSION,
                       "pandas>=%s" % PANDAS_MIN_VERSION,
                       "scikit-learn>=%s" % SKLEARN_MIN_VERSION,
                       "statsmodels>=%s" % STATSMODELS_MIN_VERSION,
                       "tqdm",
                       ]
