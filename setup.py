#!/usr/bin/env python3
"""
Drone Mission Planner - Setup Script
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="drone-mission-planner",
    version="0.1.0",
    description="Drone mission planning with QGC WPL 110 export and 3D drag editing",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: GIS",
    ],
    packages=find_packages(where=".", include=["mission_planner", "mission_planner.*"]),
    python_requires=">=3.9",
    install_requires=[
        "flask>=2.0.0",
        "flask-cors>=3.0.0",
        "pymavlink>=2.4.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mission-planner=mission_planner.cli.main:main",
            "mission-planner-server=mission_planner.server.main:main",
        ],
    },
    data_files=[
        ("config", ["config/default.yaml"]),
    ],
)
