"""Setup script for photo_cluster_map package."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="photo-cluster-map",
    version="1.0.0",
    description="Batched geotag ingestion and zoom-level clustering of photos for interactive maps",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "exif>=1.3.0",
        "geopy>=2.0.0",
        "numpy>=1.24",
        "scipy>=1.10",
    ],
    extras_require={
        "kml": ["fastkml[lxml]>=1.0", "pygeoif>=1.0"],
        "test": ["pytest>=7.0"],
        "all": ["fastkml[lxml]>=1.0", "pygeoif>=1.0", "pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "photo-cluster-map=photo_cluster_map.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics",
        "Topic :: Scientific/Engineering :: GIS",
    ],
    keywords="gps exif photo map clustering supercluster geocoding kml",
)
