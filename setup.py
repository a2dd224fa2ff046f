#!/usr/bin/env python3
"""
Setup script for Poyesis Env Python package.
"""

from setuptools import setup, find_packages
from pathlib import Path


# Read requirements from requirements.txt
def read_requirements():
    requirements_file = Path(__file__).parent / "requirements.txt"
    if requirements_file.exists():
        with open(requirements_file, "r") as f:
            return [
                line.strip()
                for line in f
                if line.strip() and not line.startswith("#")
            ]
    return []


# Read version from __init__.py
def get_version():
    init_file = Path(__file__).parent / "poyesis_env" / "__init__.py"
    if init_file.exists():
        with open(init_file, "r") as f:
            for line in f:
                if line.startswith("__version__"):
                    return line.split("=")[1].strip().strip('"').strip("'")
    return "1.0.0"


setup(
    name="poyesis-env",
    version=get_version(),
    description="Synchronize local .env files with the Poyesis secret storage API",
    long_description="A command line tool that keeps local environment files and an envs.json mapping in sync with remote secrets.",
    author="Poyesis Env Team",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=read_requirements(),
    extras_require={
        "test": [
            "pytest>=7.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "poyesis-env=poyesis_env.cli:main",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Build Tools",
        "Topic :: Security",
    ],
    keywords="secrets dotenv environment variables sync cli",
    zip_safe=False,
)
