#!/usr/bin/env python

import logging
import sys
import nsxml.info

if sys.hexversion < 0x03050000:
    logging.error("nsxml requires Python Version 3.5 (or greater)")
else:
    from setuptools import setup

    with open('README.rst') as f:
        long_description = f.read()

    setup(name=nsxml.info.name,
          version=nsxml.info.version,
          description=nsxml.info.title,
          long_description=long_description,
          author="The nsxml authors",
          url=nsxml.info.home,
          packages=['nsxml',
                    'nsxml.xml'],
          python_requires='>=3.5',
          classifiers=['Development Status :: 3 - Alpha',
                       'Intended Audience :: Developers',
                       'Natural Language :: English',
                       'License :: OSI Approved :: BSD License',
                       'Operating System :: OS Independent',
                       'Programming Language :: Python',
                       'Programming Language :: Python :: 3',
                       'Topic :: Text Processing :: Markup :: XML',
                       'Topic :: Software Development :: '
                       'Libraries :: Python Modules']
          )
