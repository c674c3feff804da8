from setuptools import find_packages, setup

setup(
    name='rpc-scenario-player',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        '': [
            '*.yaml',
            '/*.yml',
        ],
    },

    entry_points={
        'console_scripts': [
            'rpc-player=rpc_player.main:main',
        ],
    },
    python_requires='>=3.8',
    install_requires=[
        'click',
        'eth-keyfile',
        'eth-keys',
        'eth-typing',
        'eth-utils',
        'jinja2',
        'pyyaml',
        'structlog',
        'uhashring',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
)
