"""
Setup script for tokenwatch package

Handles package dependencies and installation configuration.
"""

from setuptools import setup, find_packages

setup(
    name="tokenwatch",
    version="0.1",
    description="Async watcher for huge token transfers and vault balance drifts",
    author="Neal Zhu",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    install_requires=[
        "web3>=7.0.0",
        "pydantic>=2.0.0",
        "loguru>=0.7.0",
        "tomli>=2.0.0",
        "wxpusher>=2.0.0",
        "hexbytes>=0.3.0",
        "python-telegram-bot>=20.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "tomli-w>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tokenwatch=main:main",
        ],
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
