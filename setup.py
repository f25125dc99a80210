"""Install the service provider guard package."""

from setuptools import setup, find_packages

setup(
    name='sp-guard',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    install_requires=[
        "flask>=2.3",
        "werkzeug>=2.3",
        "pytz",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ]
    },
    zip_safe=False
)
