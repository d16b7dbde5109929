"""Type definitions for the photo cluster map application."""

from dataclasses import dataclass, field
from typing import NamedTuple, TypedDict

from .constants import Constants


class Coordinates(TypedDict):
    """Decimal WGS84 coordinates returned by a geotag extractor."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Photo:
    """A geotagged image. Immutable for the lifetime of the collection."""
    id: str
    url: str
    name: str
    lat: float
    lng: float


@dataclass(frozen=True)
class Progress:
    """Ingestion progress for a single session."""
    processed: int
    total: int

    @property
    def fraction(self) -> float:
        if not self.total:
            return 0.0
        return self.processed / self.total

    @property
    def done(self) -> bool:
        return self.processed >= self.total


class BoundingBox(NamedTuple):
    """Viewport bounds in degrees."""
    west: float
    south: float
    east: float
    north: float


@dataclass(frozen=True)
class PointNode:
    """Render node standing for exactly one photo."""
    id: str
    lat: float
    lng: float
    photo: Photo
    kind: str = field(default="point", init=False)

    @property
    def count(self) -> int:
        return 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "lat": self.lat,
            "lng": self.lng,
            "photo_id": self.photo.id,
            "url": self.photo.url,
            "name": self.photo.name,
        }


@dataclass(frozen=True)
class ClusterNode:
    """Render node aggregating two or more photos at the queried zoom."""
    id: str
    lat: float
    lng: float
    count: int
    member_photo_ids: tuple[str, ...]
    kind: str = field(default="cluster", init=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "lat": self.lat,
            "lng": self.lng,
            "count": self.count,
            "member_photo_ids": list(self.member_photo_ids),
        }


RenderNode = PointNode | ClusterNode


@dataclass(frozen=True)
class OpenGallery:
    """Click outcome: open the gallery on these photos."""
    images: tuple[Photo, ...]
    start_index: int = 0


@dataclass(frozen=True)
class RecenterAndZoom:
    """Click outcome: fly the map to a point and zoom in by a delta."""
    lat: float
    lng: float
    zoom_delta: int = Constants.CLICK_ZOOM_DELTA


ClickOutcome = OpenGallery | RecenterAndZoom


@dataclass(frozen=True)
class GalleryClosed:
    """Gallery state: nothing shown."""


@dataclass(frozen=True)
class GalleryOpen:
    """Gallery state: showing images[index]."""
    images: tuple[Photo, ...]
    index: int

    @property
    def current(self) -> Photo:
        return self.images[self.index]

    @property
    def remaining_before(self) -> int:
        return self.index

    @property
    def remaining_after(self) -> int:
        return len(self.images) - self.index - 1

    @property
    def position_label(self) -> str:
        return f"{self.index + 1} / {len(self.images)}"


GalleryState = GalleryClosed | GalleryOpen


@dataclass
class ClusterConfig:
    """Spatial index parameters."""
    radius: float = Constants.DEFAULT_CLUSTER_RADIUS
    min_zoom: int = Constants.DEFAULT_MIN_ZOOM
    max_zoom: int = Constants.DEFAULT_MAX_ZOOM
    extent: int = Constants.DEFAULT_EXTENT
    min_points: int = Constants.DEFAULT_MIN_POINTS


@dataclass
class IngestConfig:
    """Ingestion pipeline parameters."""
    batch_size: int = Constants.DEFAULT_BATCH_SIZE


@dataclass
class DirectoryConfig:
    """Directory configuration parameters."""
    root: str | None = None
    recursive: bool = True


@dataclass
class ViewportConfig:
    """Viewport configuration parameters."""
    bbox: BoundingBox | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius: float = Constants.DEFAULT_RADIUS_MILES
    zoom: float = Constants.DEFAULT_VIEWPORT_ZOOM


@dataclass
class OutputConfig:
    """Output configuration parameters."""
    export_kml: str | None = None
    export_csv: str | None = None
    verbose: bool = False


@dataclass
class ApplicationConfig:
    """All configuration sections of a run."""
    directory: DirectoryConfig = field(default_factory=DirectoryConfig)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    clustering: ClusterConfig = field(default_factory=ClusterConfig)
    ingestion: IngestConfig = field(default_factory=IngestConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
