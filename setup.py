from setuptools import setup, find_packages
from os import path

cur_dir = path.abspath(path.dirname(__file__))

VERSION = '0.1.0'

setup(
    name="teamboard",
    author="Teamboard developers",
    author_email="dev@teamboard.invalid",
    version=VERSION,
    packages=find_packages(exclude=['test_project', 'test_project.*']),
    license="LICENSE.md",
    install_requires=[
        'Django>=4.2',
        'djangorestframework>=3',
        'pytz',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-django',
        ],
    },
    include_package_data=True,
    python_requires=">=3.10",
)
