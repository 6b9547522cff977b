import os
from mpenc import __name__, __version__
from setuptools import setup, find_packages

BASE = os.path.dirname(__file__)
with open(os.path.join(BASE, 'README.md'), encoding='utf-8') as fh:
    long_description = fh.read()


setup(
    name=__name__,
    version=__version__,
    description="Framing codecs and key material for multi-recipient hybrid encryption",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords="encryption envelope ecies framing",
    license='MIT',
    python_requires='>=3.7',
    packages=find_packages(exclude=('tests', 'tests.*')),
    zip_safe=False,
    entry_points={
        'console_scripts': [
            'mpenc=mpenc.cli:main',
        ],
    },
    install_requires=[
        'appdirs>=1.4.3',
        'cryptography>=3.1',
        'pyyaml>=5.3.1',
        'ecdsa>=0.16',
        'coincurve>=18.0.0',
    ],
    extras_require={
        'lint': [
            'pylint'
        ],
        'test': [
            'coverage',
        ],
    },
    classifiers=[
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
        'Topic :: Security :: Cryptography',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Utilities',
    ],
)
