#!/usr/bin/env python3
"""
Setup script for the RGB-D capture to point cloud converter
"""

from setuptools import setup, find_packages

setup(
    name="rgbd2point",
    version="1.0.0",
    description="Convert recorded RGB-D captures into averaged, colored PLY point clouds",
    author="Thorn",
    packages=find_packages(include=["rgbd2point", "rgbd2point.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.19.0",
        "opencv-python>=4.5.0",
        "PyYAML>=5.4",
    ],
    extras_require={
        "realsense": ["pyrealsense2>=2.50.0"],
        "viz": ["open3d>=0.15.0"],
        "test": ["pytest>=6.0"],
    },
    package_data={"rgbd2point": ["config/*.yaml"]},
    entry_points={
        "console_scripts": [
            "rgbd2point=rgbd2point.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Image Processing",
    ],
)
