#!/usr/bin/env python3
"""
callpath setup script
"""

import os
import re

from setuptools import find_packages, setup

this_directory = os.path.abspath(os.path.dirname(__file__))

# Read the contents of README.md
with open(os.path.join(this_directory, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

# Single source of truth for the version
with open(os.path.join(this_directory, "callpath", "__version__.py"), encoding="utf-8") as f:
    version = re.search(r'__version__ = "([^"]+)"', f.read()).group(1)

setup(
    name="callpath",
    version=version,
    description="Static call path finder for Python codebases",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="callpath contributors",
    packages=find_packages(include=["callpath", "callpath.*"]),
    install_requires=[
        "colorama>=0.4.6,<0.5",
        "rich>=13.7.0,<15",
        "pyyaml>=6.0.1,<7",
        "click>=8.1.7,<9",
    ],
    extras_require={
        "mcp": [
            "pydantic>=2.4.0,<3.0.0",
            "fastmcp>=2.0.0",
        ],
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pydantic>=2.4.0,<3.0.0",
            "black>=23.7.0",
            "isort>=5.12.0",
            "mypy>=1.5.1",
            "flake8>=6.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "callpath=callpath.main:run_callpath",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Topic :: Software Development :: Quality Assurance",
    ],
    python_requires=">=3.10",
    keywords=[
        "static-analysis",
        "call-graph",
        "call-path",
        "mcp",
        "model-context-protocol",
    ],
    include_package_data=True,
)
