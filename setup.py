"""Install the bud user service package."""

from setuptools import setup, find_packages

setup(
    name='bud-users',
    version='0.1.0',
    packages=['bud'] + [f'bud.{package}' for package
                        in find_packages('./bud', exclude=['*test*'])],
    python_requires='>=3.9',
    install_requires=[
        "bcrypt>=4.0",
        "pydantic[email]>=2.0",
        "pyjwt>=2.0",
        "python-json-logger>=2.0.2",
        "pytz",
        "sqlalchemy>=1.4"
    ],
    extras_require={
        'test': [
            "mimesis>=5.0",
            "pytest"
        ]
    },
    zip_safe=False
)
