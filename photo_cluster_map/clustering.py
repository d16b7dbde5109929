"""Hierarchical, zoom-levelled spatial clustering of photos."""

import logging
import math
from dataclasses import dataclass, field

import numpy as np
from scipy.spatial import cKDTree

from .exceptions import ClusterNotFoundError, ConfigurationError
from .types import ClusterConfig, Photo


def lng_x(lng: float) -> float:
    """Project a longitude to Web Mercator x in [0, 1]."""
    return lng / 360 + 0.5


def lat_y(lat: float) -> float:
    """Project a latitude to Web Mercator y in [0, 1] (north is 0)."""
    sin = math.sin(lat * math.pi / 180)
    if sin >= 1:
        return 0.0
    if sin <= -1:
        return 1.0
    y = 0.5 - 0.25 * math.log((1 + sin) / (1 - sin)) / math.pi
    return min(max(y, 0.0), 1.0)


def x_lng(x: float) -> float:
    """Inverse of lng_x."""
    return (x - 0.5) * 360


def y_lat(y: float) -> float:
    """Inverse of lat_y."""
    y2 = (180 - y * 360) * math.pi / 180
    return 360 * math.atan(math.exp(y2)) / math.pi - 90


# Latitudes beyond this project onto the top or bottom edge (y = 0 or 1)
MAX_LATITUDE = y_lat(0.0)


@dataclass(eq=False)
class IndexNode:
    """
    One entry of a zoom level: either a single photo or a cluster.

    Clusters keep their direct children from the next finer level and the ids
    of every photo beneath them.
    """
    x: float
    y: float
    count: int
    leaf_ids: tuple[str, ...]
    # Count-weighted mean latitude in degrees; unlike y it is never clamped
    mean_lat: float
    photo: Photo | None = None
    cluster_id: str | None = None
    zoom: int | None = None
    children: tuple["IndexNode", ...] = field(default=())

    @property
    def is_cluster(self) -> bool:
        return self.cluster_id is not None

    @property
    def lat(self) -> float:
        return self.photo.lat if self.photo else y_lat(self.y)

    @property
    def lng(self) -> float:
        return self.photo.lng if self.photo else x_lng(self.x)


class ZoomLevel:
    """All nodes visible at one zoom, with a KD-tree over their projected positions."""

    def __init__(self, zoom: int, nodes: list[IndexNode]):
        self.zoom = zoom
        self.nodes = nodes
        self.xs = np.array([node.x for node in nodes], dtype=float)
        self.ys = np.array([node.y for node in nodes], dtype=float)
        self.tree = cKDTree(np.column_stack((self.xs, self.ys))) if nodes else None

    def __len__(self) -> int:
        return len(self.nodes)

    def within(self, x: float, y: float, radius: float) -> list[int]:
        """Indices of nodes within euclidean `radius` of (x, y), ascending."""
        if self.tree is None:
            return []
        return sorted(self.tree.query_ball_point((x, y), radius))

    def range(self, min_x: float, min_y: float, max_x: float, max_y: float) -> list[int]:
        """Indices of nodes inside the inclusive rectangle, ascending."""
        if self.tree is None or min_x > max_x or min_y > max_y:
            return []

        center = ((min_x + max_x) / 2, (min_y + max_y) / 2)
        # Padded so rounding in the centre never drops a node on the edge;
        # the mask below applies the exact bounds.
        half = max(max_x - min_x, max_y - min_y) / 2 + 1e-9
        candidates = np.asarray(self.tree.query_ball_point(center, half, p=np.inf), dtype=int)
        if not candidates.size:
            return []

        xs = self.xs[candidates]
        ys = self.ys[candidates]
        inside = (xs >= min_x) & (xs <= max_x) & (ys >= min_y) & (ys <= max_y)
        return sorted(candidates[inside].tolist())


class SpatialIndex:
    """
    Immutable snapshot of a photo collection clustered at every zoom level.

    Level `max_zoom` holds the raw photos. Each coarser level is derived from
    the next finer one, so cluster membership nests across zoom levels.
    """

    def __init__(
        self,
        cluster_config: ClusterConfig,
        photos: tuple[Photo, ...],
        levels: dict[int, ZoomLevel],
        clusters: dict[str, IndexNode],
    ):
        self.cluster_config = cluster_config
        self._photos = photos
        self._photos_by_id = {photo.id: photo for photo in photos}
        self._levels = levels
        self._clusters = clusters

    def __len__(self) -> int:
        return len(self._photos)

    @property
    def photos(self) -> tuple[Photo, ...]:
        return self._photos

    @property
    def cluster_count(self) -> int:
        return len(self._clusters)

    def photo(self, photo_id: str) -> Photo | None:
        return self._photos_by_id.get(photo_id)

    def limit_zoom(self, zoom: float) -> int:
        """Map any zoom value onto a precomputed level."""
        config = self.cluster_config
        clamped = max(config.min_zoom, min(zoom, config.max_zoom))
        return int(math.floor(clamped))

    def level(self, zoom: float) -> ZoomLevel | None:
        return self._levels.get(self.limit_zoom(zoom))

    def get_cluster(self, cluster_id: str) -> IndexNode:
        """
        Look up a cluster by id.

        Raises:
            ClusterNotFoundError: If this snapshot has no such cluster
        """
        try:
            return self._clusters[cluster_id]
        except KeyError as e:
            raise ClusterNotFoundError(f"No cluster with id {cluster_id!r}") from e

    def leaves(self, cluster_id: str) -> list[Photo]:
        """Every photo under a cluster, in index order."""
        cluster = self.get_cluster(cluster_id)
        return [
            self._photos_by_id[photo_id]
            for photo_id in cluster.leaf_ids
            if photo_id in self._photos_by_id
        ]


class ClusteringEngine:
    """Builds SpatialIndex snapshots from photo collections."""

    def __init__(self, cluster_config: ClusterConfig, logger: logging.Logger):
        self.cluster_config = cluster_config
        self.logger = logger
        self._validate_config()

    def _validate_config(self) -> None:
        config = self.cluster_config
        if config.min_zoom < 0 or config.max_zoom < config.min_zoom:
            raise ConfigurationError(
                f"Invalid zoom range: min_zoom={config.min_zoom}, max_zoom={config.max_zoom}"
            )
        if config.radius <= 0 or config.extent <= 0:
            raise ConfigurationError("Cluster radius and extent must be positive")
        if config.min_points < 2:
            raise ConfigurationError("A cluster needs at least 2 points")

    def build(self, photos) -> SpatialIndex:
        """
        Cluster a photo collection at every zoom from max_zoom down to min_zoom.

        Args:
            photos: Photo records; their order fixes cluster ids and result order

        Returns:
            A new SpatialIndex. Existing snapshots are untouched.
        """
        config = self.cluster_config
        photos = tuple(photos)
        levels: dict[int, ZoomLevel] = {}
        clusters: dict[str, IndexNode] = {}

        if not photos:
            self.logger.debug("Built empty spatial index")
            return SpatialIndex(config, photos, levels, clusters)

        nodes = [
            IndexNode(x=lng_x(photo.lng), y=lat_y(photo.lat), count=1,
                      leaf_ids=(photo.id,), mean_lat=photo.lat, photo=photo)
            for photo in photos
        ]
        level = ZoomLevel(config.max_zoom, nodes)
        levels[config.max_zoom] = level

        for zoom in range(config.max_zoom - 1, config.min_zoom - 1, -1):
            level = ZoomLevel(zoom, self._cluster(level, zoom, clusters))
            levels[zoom] = level
            self.logger.debug(f"Zoom {zoom}: {len(level)} nodes")

        self.logger.info(
            f"Indexed {len(photos)} photos into {len(clusters)} clusters "
            f"across zoom {config.min_zoom}-{config.max_zoom}"
        )
        return SpatialIndex(config, photos, levels, clusters)

    def _cluster(
        self, finer: ZoomLevel, zoom: int, clusters: dict[str, IndexNode]
    ) -> list[IndexNode]:
        """Merge the nodes of the finer level that lie within the radius at `zoom`."""
        config = self.cluster_config
        radius = config.radius / (config.extent * 2 ** zoom)
        absorbed = [False] * len(finer)
        result: list[IndexNode] = []
        ordinal = 0

        for i, node in enumerate(finer.nodes):
            if absorbed[i]:
                continue
            absorbed[i] = True

            neighbor_ids = [j for j in finer.within(node.x, node.y, radius) if not absorbed[j]]
            count = node.count + sum(finer.nodes[j].count for j in neighbor_ids)

            if neighbor_ids and count >= config.min_points:
                members = [node] + [finer.nodes[j] for j in neighbor_ids]
                for j in neighbor_ids:
                    absorbed[j] = True

                # Weighted by count, so every photo underneath counts once
                wx = sum(member.x * member.count for member in members)
                wy = sum(member.y * member.count for member in members)
                wlat = sum(member.mean_lat * member.count for member in members)
                cluster_id = f"cluster-{zoom}-{ordinal}"
                ordinal += 1

                cluster = IndexNode(
                    x=wx / count,
                    y=wy / count,
                    mean_lat=wlat / count,
                    count=count,
                    leaf_ids=tuple(leaf for member in members for leaf in member.leaf_ids),
                    cluster_id=cluster_id,
                    zoom=zoom,
                    children=tuple(members),
                )
                clusters[cluster_id] = cluster
                result.append(cluster)
            else:
                result.append(node)
                for j in neighbor_ids:
                    absorbed[j] = True
                    result.append(finer.nodes[j])

        return result
