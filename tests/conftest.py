"""Pytest configuration and shared fixtures for photo_cluster_map tests."""

import tempfile
from dataclasses import dataclass
from pathlib import Path
from unittest.mock import Mock

import pytest

from photo_cluster_map.types import (
    ClusterConfig, IngestConfig, Photo, ViewportConfig
)


def pytest_configure(config):
    for marker in ("unit", "integration", "e2e", "requires_network"):
        config.addinivalue_line("markers", f"{marker}: {marker} tests")


# =============================================================================
# Test Doubles
# =============================================================================

@dataclass
class FakeFile:
    """In-memory FileHandle. A payload that is an exception is raised on read."""
    name: str
    payload: bytes | Exception = b""
    media_type: str | None = "image/jpeg"

    @property
    def url(self) -> str:
        return f"memory://{self.name}"

    def read(self) -> bytes:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


def fake_extractor(data: bytes):
    """
    Extractor driven by the payload text:
    "lat,lng" -> coordinates, "nogps" -> None, "corrupt" -> ValueError.
    """
    text = data.decode()
    if text == "corrupt":
        raise ValueError("not a valid image")
    if text == "nogps":
        return None
    lat, lng = text.split(",")
    return {"latitude": float(lat), "longitude": float(lng)}


def make_photo(photo_id: str, lat: float, lng: float) -> Photo:
    return Photo(id=photo_id, url=f"memory://{photo_id}.jpg", name=f"{photo_id}.jpg", lat=lat, lng=lng)


@pytest.fixture
def fake_file():
    """The FakeFile class, for building in-memory file handles."""
    return FakeFile


@pytest.fixture
def extractor():
    """Payload-driven fake geotag extractor."""
    return fake_extractor


@pytest.fixture
def photo_factory():
    """Factory for Photo records."""
    return make_photo


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def cluster_config():
    """Default clustering configuration (radius 40, zoom 0-16)."""
    return ClusterConfig()


@pytest.fixture
def ingest_config():
    """Default ingestion configuration (batches of 10)."""
    return IngestConfig()


@pytest.fixture
def coordinate_viewport_config():
    """Viewport centered on coordinates."""
    return ViewportConfig(latitude=37.5665, longitude=126.9780, radius=10.0, zoom=9)


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def nearby_photos():
    """Three photos a few meters apart in central Seoul."""
    return [
        make_photo("a", 37.56650, 126.97800),
        make_photo("b", 37.56652, 126.97803),
        make_photo("c", 37.56655, 126.97801),
    ]


@pytest.fixture
def spread_photos():
    """Photos in Seoul, Busan, Jeju and Tokyo, with a tight group in Seoul."""
    return [
        make_photo("seoul-1", 37.5665, 126.9780),
        make_photo("seoul-2", 37.5667, 126.9782),
        make_photo("seoul-3", 37.5700, 126.9830),
        make_photo("busan-1", 35.1796, 129.0756),
        make_photo("busan-2", 35.1800, 129.0760),
        make_photo("jeju-1", 33.4996, 126.5312),
        make_photo("tokyo-1", 35.6762, 139.6503),
    ]


@pytest.fixture
def mixed_files():
    """25 image files (5 without GPS, 2 corrupt) plus 3 non-image files."""
    files = []
    for i in range(25):
        if i % 5 == 1:
            payload = b"nogps"
        elif i in (3, 17):
            payload = b"corrupt"
        else:
            payload = f"{37.0 + i * 0.01},{127.0 + i * 0.01}".encode()
        files.append(FakeFile(name=f"IMG_{i:04d}.jpg", payload=payload))

    files.insert(4, FakeFile(name="notes.txt", payload=b"37.0,127.0", media_type="text/plain"))
    files.insert(12, FakeFile(name="clip.mp4", payload=b"37.0,127.0", media_type="video/mp4"))
    files.append(FakeFile(name="unknown", payload=b"37.0,127.0", media_type=None))
    return files


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_logger():
    """Mock logger for testing."""
    logger = Mock()
    logger.info = Mock()
    logger.warning = Mock()
    logger.error = Mock()
    logger.debug = Mock()
    return logger


@pytest.fixture
def mock_geocoder():
    """Mock Nominatim geocoder."""
    geocoder = Mock()
    mock_location = Mock()
    mock_location.latitude = 37.5665
    mock_location.longitude = 126.9780
    mock_location.address = "Seoul, South Korea"
    geocoder.geocode.return_value = mock_location
    return geocoder


# =============================================================================
# File System Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)
