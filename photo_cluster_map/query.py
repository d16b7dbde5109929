"""Viewport queries, cluster expansion and click handling against a SpatialIndex."""

import logging

from .clustering import MAX_LATITUDE, IndexNode, SpatialIndex, lat_y, lng_x
from .constants import Constants
from .exceptions import ClusterNotFoundError, EmptyClusterExpansionError
from .types import (
    BoundingBox,
    ClickOutcome,
    ClusterNode,
    OpenGallery,
    Photo,
    PointNode,
    RecenterAndZoom,
    RenderNode,
)


def normalize_bbox(bbox: BoundingBox) -> list[tuple[float, float, float, float]]:
    """
    Wrap longitudes into [-180, 180] and clamp latitudes to [-90, 90].

    Returns one (west, south, east, north) range, or two when the box crosses
    the antimeridian.
    """
    west, south, east, north = bbox
    min_lat = max(-90.0, min(90.0, south))
    max_lat = max(-90.0, min(90.0, north))

    if east - west >= 360:
        return [(-180.0, min_lat, 180.0, max_lat)]

    min_lng = (west + 180) % 360 - 180
    max_lng = 180.0 if east == 180 else (east + 180) % 360 - 180

    if min_lng > max_lng:
        return [(min_lng, min_lat, 180.0, max_lat), (-180.0, min_lat, max_lng, max_lat)]
    return [(min_lng, min_lat, max_lng, max_lat)]


class ClusterQueryEngine:
    """Answers viewport queries and click events for the view layer."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def query(self, index: SpatialIndex, bbox: BoundingBox, zoom: float) -> list[RenderNode]:
        """
        Return the point and cluster nodes whose position lies inside bbox at zoom.

        Boundaries are inclusive. Identical (index, bbox, zoom) inputs always
        produce the same nodes in the same order.
        """
        level = index.level(zoom)
        if level is None:
            return []

        seen: set[int] = set()
        node_ids: list[int] = []
        for west, south, east, north in normalize_bbox(BoundingBox(*bbox)):
            # Past MAX_LATITUDE edges and nodes are both clamped to y = 0 or 1,
            # so nodes on those edges are checked against the bounds in degrees
            polar = north > MAX_LATITUDE or south < -MAX_LATITUDE
            for i in level.range(lng_x(west), lat_y(north), lng_x(east), lat_y(south)):
                node = level.nodes[i]
                if polar and node.y in (0.0, 1.0) and not south <= node.mean_lat <= north:
                    continue
                if i not in seen:
                    seen.add(i)
                    node_ids.append(i)

        nodes = [self.to_render_node(level.nodes[i]) for i in node_ids]
        self.logger.debug(f"Query zoom={zoom} bbox={tuple(bbox)}: {len(nodes)} nodes")
        return nodes

    def to_render_node(self, node: IndexNode) -> RenderNode:
        if node.is_cluster:
            return ClusterNode(
                id=node.cluster_id,
                lat=node.lat,
                lng=node.lng,
                count=node.count,
                member_photo_ids=node.leaf_ids,
            )
        return PointNode(id=node.photo.id, lat=node.lat, lng=node.lng, photo=node.photo)

    def expand(self, index: SpatialIndex, cluster_id: str) -> list[Photo]:
        """
        Return every photo under a cluster, however deeply it is nested.

        Raises:
            ClusterNotFoundError: If the cluster is not in this index
        """
        photos = index.leaves(cluster_id)
        unique = list({photo.id: photo for photo in photos}.values())
        if len(unique) != len(photos):
            self.logger.warning(f"Cluster {cluster_id} listed {len(photos) - len(unique)} duplicates")
        return unique

    def children(self, index: SpatialIndex, cluster_id: str) -> list[RenderNode]:
        """Nodes a cluster splits into one zoom level further in."""
        cluster = index.get_cluster(cluster_id)
        return [self.to_render_node(child) for child in cluster.children]

    def expansion_zoom(self, index: SpatialIndex, cluster_id: str) -> int:
        """Lowest zoom at which the cluster is no longer shown as one node."""
        cluster = index.get_cluster(cluster_id)
        return min(cluster.zoom + 1, index.cluster_config.max_zoom)

    def click(self, index: SpatialIndex, node: RenderNode) -> ClickOutcome:
        """
        Translate a click on a rendered node into an instruction for the view.

        Points open the gallery on their photo. Clusters open the gallery on all
        of their photos, or ask the view to zoom in when none can be resolved.
        """
        if isinstance(node, PointNode):
            return OpenGallery(images=(node.photo,), start_index=0)

        try:
            cluster = index.get_cluster(node.id)
            if cluster.leaf_ids != tuple(node.member_photo_ids):
                raise ClusterNotFoundError(f"Cluster {node.id} belongs to an older index")
            photos = self.expand(index, node.id)
            if not photos:
                raise EmptyClusterExpansionError(f"Cluster {node.id} has no photos")
        except (ClusterNotFoundError, EmptyClusterExpansionError) as e:
            self.logger.warning(f"{e}; zooming in on {node.lat:.5f}, {node.lng:.5f}")
            return RecenterAndZoom(lat=node.lat, lng=node.lng, zoom_delta=Constants.CLICK_ZOOM_DELTA)

        return OpenGallery(images=tuple(photos), start_index=0)
