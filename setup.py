#!/usr/bin/env python3
"""
Packaging for pip install and pip install -e .
"""

from setuptools import setup, find_packages

setup(
    name="atx-inspector",
    version="0.1.0",
    description="Decoder and validator for ATX (AT8X) Atari floppy disk images",
    license="MIT",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.5.0",
        "rich>=13.7.0",
        "numpy>=1.26.0",
    ],
    extras_require={
        "test": ["pytest>=7.4.0"],
    },
    entry_points={
        "console_scripts": [
            "atx-inspector=atx_inspector.main:main",
        ],
    },
)
