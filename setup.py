import os

# BEFORE importing distutils, remove MANIFEST. distutils doesn't properly
# update it when the contents of directories change.
if os.path.exists('MANIFEST'): os.remove('MANIFEST')
import setuptools

from setuptools import setup

# get metadata without importing the package

info = {}
dirname = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(dirname, 'oempath', 'info.py'), 'rt', encoding='utf-8') as f:
    exec(f.read(), info)

def main(**extra_args):
    setup(name=info['NAME'],
          version=info['VERSION'],
          description=info['DESCRIPTION'],
          long_description=info['LONG_DESCRIPTION'],
          license=info['LICENSE'],
          classifiers=info['CLASSIFIERS'],
          author=info['AUTHOR'],
          platforms=info['PLATFORMS'],
          packages = ['oempath'],
          install_requires=info['REQUIRES'],
          extras_require={'test':['pytest']},
          python_requires='>=3.8',
          data_files=[],
          scripts=[],
          **extra_args
         )

#simple way to test what setup will do
#python setup.py install --prefix=/tmp
if __name__ == "__main__":
    main()
