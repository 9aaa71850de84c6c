"""
versionstore setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="versionstore",
    version="1.0.0",
    description="versionstore — versioned document store on a plain filesystem",
    packages=find_packages(include=["versionstore", "versionstore.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "versionstore=versionstore.cli:main",
        ],
    },
    install_requires=[
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
)
