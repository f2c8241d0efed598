"""Setup script for BlockArm"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="blockarm",
    version="1.0.0",
    author="BlockArm Team",
    description="Block programs for serial-bus servo arms",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "pyserial>=3.5",
        "numpy>=1.24.3",
        "pyyaml>=6.0.1",
        "dataclasses-json>=0.6.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "blockarm=blockarm.main:main",
        ],
    },
)
