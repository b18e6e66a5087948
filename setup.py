from setuptools import find_packages, setup

setup(
    name='hedera-scenario-player',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        '': [
            '*.yaml',
            '*.yml',
        ],
    },

    entry_points={
        'console_scripts': [
            'hedera-scenario-player=hedera_scenario_player.__main__:main',
        ],
    },
    python_requires='>=3.10',
    install_requires=[
        'hiero-sdk-python>=0.3.0',
        'click',
        'gevent',
        'jinja2',
        'marshmallow>=3.13',
        'pyyaml',
        'structlog',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
)
