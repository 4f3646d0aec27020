"""
pysimpledb - Lightweight SQL statement builder and data access layer

One fluent builder for MySQL, SQLite, PostgreSQL and SQL Server.
Accumulate conditions, joins and options, render parameterized SQL, execute.
"""

from setuptools import setup, find_packages
import os

# Read README for long description
def read_long_description():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return ""

# Define optional dependencies
extras_require = {
    # Standard library drivers and loaders (no extra install needed)
    'sqlite': [],
    'csv': [],
    'json': [],

    # Database drivers
    'mysql': [
        'PyMySQL>=1.0.0',
    ],
    'pgsql': [
        'psycopg2-binary>=2.9.0',
    ],
    'sqlsrv': [
        'pyodbc>=4.0.30',
    ],

    # Bulk loaders requiring external dependencies
    'excel': [
        'openpyxl>=3.0.0',
    ],
    'xml': [
        'lxml>=4.9.0',
    ],

    # Test dependencies
    'test': [
        'pytest>=7.0.0',
    ],

    # Development dependencies
    'dev': [
        'mypy>=0.950',
        'build>=0.7.0',
        'twine>=4.0.0',
    ],
}

# All drivers and loaders
extras_require['all'] = (
    extras_require['mysql'] +
    extras_require['pgsql'] +
    extras_require['sqlsrv'] +
    extras_require['excel'] +
    extras_require['xml']
)

# Full development environment
extras_require['full'] = (
    extras_require['all'] +
    extras_require['test'] +
    extras_require['dev']
)

setup(
    name="pysimpledb",
    version="0.1.0",
    author="",
    author_email="",
    description="Lightweight SQL statement builder - fluent conditions, subqueries, pagination, multi-database",
    long_description=read_long_description(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=['examples', 'tests']),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "Topic :: Database :: Front-Ends",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Typing :: Typed",
    ],
    python_requires=">=3.10",

    # Core dependencies (zero external dependencies, SQLite via the standard library)
    install_requires=[],

    # Optional dependencies
    extras_require=extras_require,

    # Project metadata
    keywords="sql query-builder database mysql sqlite postgresql sqlserver dbapi",
)
