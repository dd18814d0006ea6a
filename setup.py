"""
kapub Setup Script

Install with: pip install -e .
With the DKG SDK: pip install -e ".[dkg]"
"""

from setuptools import setup, find_packages

setup(
    name='kapub',
    version='0.1.0',
    description='Knowledge Asset Publisher - JSON-LD publication and SPARQL querying on the OriginTrail DKG',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'kapub': ['config/*.yaml', 'schemas/*.yaml'],
    },
    include_package_data=True,
    install_requires=[
        'pydantic>=2.5.0',
        'pyyaml>=6.0.1',
        'aiohttp>=3.9.0',
        'structlog>=23.2.0',
        'python-dotenv>=1.0.0',
        'click>=8.1.0',
    ],
    extras_require={
        'dkg': [
            'dkg>=8.0.0',
        ],
        'test': [
            'pytest>=7.4.0',
            'pytest-asyncio>=0.21.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'kapub=kapub.cli:cli',
        ],
    },
    python_requires='>=3.11',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Database',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
    ],
)
