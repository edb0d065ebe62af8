from setuptools import setup

with open("README.md", 'r') as f:
    long_description = f.read()

setup(
    # Module info
    name='xplanning',
    version='0.1',
    description='A module for building factored MDPs and computing'+\
                        ' cost-optimal deterministic policies under'+\
                        ' hard and soft constraints on quality attributes',
    license="GNU 3.0",
    long_description=long_description,
    long_description_content_type='text/markdown',

    # Internal Modules
    packages=[
        'xplanning',
        'xplanning.modeling'
    ],
    package_dir={
        'xplanning': 'xplanning/',
        'xplanning.modeling': 'xplanning/modeling'
    },

    # Requirements
    install_requires=[
        'numpy',
        'gurobipy',
        'tqdm'
    ],
    extras_require={
        'test': ['pytest']
    }
)
