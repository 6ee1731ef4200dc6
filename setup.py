#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from setuptools import setup, find_packages

setup(
    name="makefile_tools",
    version="1.0.0",
    description="Dry-run trace parser and configure pipeline for makefile projects",
    author="Max Qian",
    author_email="lightapt@example.com",
    packages=find_packages(include=["makefile_tools", "makefile_tools.*"]),
    python_requires=">=3.11",
    install_requires=[
        "loguru>=0.7.0",
        "pydantic>=2.0",
        "aiofiles>=23.1.0",
        "psutil>=5.9.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-mock>=3.10.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-mock>=3.10.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "makefile_tools=makefile_tools.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Build Tools",
    ],
)
