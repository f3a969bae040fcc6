from setuptools import setup, find_packages

setup(
    name             = "marketwalk",
    version          = "1.0.0",
    description      = "OHLC walkthrough: keyed price-series ingestion, derived series and charts",
    packages         = find_packages(include=["marketwalk", "marketwalk.*"]),
    py_modules       = ["main"],
    python_requires  = ">=3.10",
    install_requires = [
        "yfinance>=0.2.40",
        "pandas>=2.0.0",
        "numpy>=1.24.0",
        "matplotlib>=3.7.0",
    ],
    extras_require   = {
        "test": ["pytest>=7.0"],
    },
    entry_points     = {
        "console_scripts": ["marketwalk = main:main"]
    },
    classifiers      = [
        "Programming Language :: Python :: 3",
        "Topic :: Office/Business :: Financial",
        "Topic :: Scientific/Engineering :: Information Analysis",
    ],
)
