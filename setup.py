"""
JanMap Backend - Station Proximity Service Build Script

雀荘 검색 서비스의 역 근접성 API (FastAPI + PostgreSQL)
"""

from setuptools import setup, find_packages


setup(
    name='janmap-backend',
    version='1.2.0',
    author='JanMap Team',
    description='Station proximity core for a mahjong parlor directory',
    long_description='''
    Nearest-station assignment with walking time estimation, station group
    resolution, and radius / station based proximity search for a mahjong
    parlor directory. Served as a FastAPI application on PostgreSQL.
    ''',
    packages=find_packages(include=['janmap', 'janmap.*']),
    install_requires=[
        'fastapi>=0.100.0',
        'uvicorn>=0.22.0',
        'pydantic>=2.0',
        'psycopg2-binary>=2.9',
        'redis>=4.5',
        'httpx>=0.24',
        'numpy>=1.24',
        'scipy>=1.10',
        'python-dotenv>=1.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-mock>=3.10',
            'pytest-cov>=4.0',
        ],
    },
    zip_safe=False,
    python_requires='>=3.9',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Scientific/Engineering :: GIS',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
)
