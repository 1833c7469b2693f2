"""Setup script for cmla"""
import os
import re

from setuptools import find_packages, setup

HERE = os.path.dirname(__file__)


def get_version():
    version_re = re.compile(r'''__version__ = ['"]([0-9.]+)['"]''')
    init = open(os.path.join(HERE, 'cmla', '__init__.py')).read()
    return version_re.search(init).group(1)


setup(
    name='cmla',
    version=get_version(),
    description='CMLA: rebuild a macOS unified logging .logarchive from an extracted file tree',
    long_description=open(os.path.join(HERE, 'README.md')).read(),
    long_description_content_type='text/markdown',
    entry_points={
        'console_scripts': [
            'cmla=cmla.cmla:main'
        ]
    },
    python_requires='>=3.6',
    install_requires=[
        'python-dateutil>=2.8.0',
        'pytz>=2019.1',
        'xattr>=0.9.6'
    ],
    extras_require={
        'test': ['pytest']
    },
    packages=find_packages(exclude=['tests', 'tests.*']),
    zip_safe=False
)
