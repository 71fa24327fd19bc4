#!/usr/bin/env python

import os
import re

from setuptools import setup


def read_version():
    lib = open(os.path.join(os.path.dirname(os.path.abspath(__file__)), "toyrsa", "__init__.py")).read()
    return re.findall("VERSION.*=.*['\"](.*)['\"]", lib)[0]


setup(name='toyrsa',
      version=read_version(),
      description='Textbook RSA over base-36 text blocks, on OpenSSL big numbers',
      packages=['toyrsa'],
      license="2-clause BSD",
      long_description="""Textbook (unpadded) RSA key generation, encryption and decryption of
alphabetic text, using OpenSSL big numbers through cffi. For teaching, not for protecting data.""",
      python_requires=">=3.6",
      install_requires=[
            "cffi >= 1.0.0",
            "pycparser >= 2.10",
            "msgpack >= 1.0.0",
            "pytest >= 2.5.0",
      ],
      extras_require={
            "test": [
                  "pytest >= 2.5.0",
                  "pytest-cov >= 1.8.1",
                  "paver >= 1.2.3",
            ],
      },
      entry_points={
            "console_scripts": ["toyrsa = toyrsa.menu:main"],
      },
      zip_safe=False,
)
