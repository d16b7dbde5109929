"""
Photo Cluster Map - geotagged photo ingestion and zoom-dependent map clustering.

This package provides functionality to:
- Ingest batches of image files without blocking the event loop
- Extract GPS coordinates from EXIF metadata
- Cluster photos for any map viewport and zoom level
- Expand clusters back into their photos and drive a gallery
- Export viewport markers to CSV and KML formats
"""

__version__ = "1.0.0"

from .clustering import ClusteringEngine, SpatialIndex
from .gallery import Gallery
from .ingest import IngestionPipeline, LocalFile
from .library import PhotoLibrary
from .main import main
from .query import ClusterQueryEngine

__all__ = [
    "ClusterQueryEngine",
    "ClusteringEngine",
    "Gallery",
    "IngestionPipeline",
    "LocalFile",
    "PhotoLibrary",
    "SpatialIndex",
    "main",
]
