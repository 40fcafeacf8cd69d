"""
quotesync build configuration

Usage:
    pip install -e .            # Runtime dependencies
    pip install -e ".[test]"    # Plus the test toolchain
"""

from setuptools import setup, find_packages

setup(
    name="quotesync",
    version="0.1.0",
    description="Quote of the day with local/remote reconciliation",
    packages=find_packages(include=["quotesync", "quotesync.*"]),
    install_requires=[
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "loguru>=0.7",
        "aiosqlite>=0.19",
        "httpx>=0.27",
        "fastapi>=0.110",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
        "server": [
            "uvicorn>=0.27",
        ],
    },
    python_requires=">=3.11",
)
