"""Tests for the clustering module.

These tests verify how ClusteringEngine builds SpatialIndex snapshots: the
Web Mercator projection, zoom levels, cluster nesting and centroids.
"""

import math

import pytest

from photo_cluster_map.clustering import (
    ClusteringEngine, SpatialIndex, lat_y, lng_x, x_lng, y_lat
)
from photo_cluster_map.exceptions import ClusterNotFoundError, ConfigurationError
from photo_cluster_map.types import ClusterConfig


class TestProjection:
    """Test suite for the projection helpers."""

    @pytest.mark.unit
    def test_longitude_projection(self):
        """Test longitudes map linearly onto [0, 1]."""
        assert lng_x(-180) == 0.0
        assert lng_x(0) == 0.5
        assert lng_x(180) == 1.0
        assert x_lng(lng_x(126.978)) == pytest.approx(126.978)

    @pytest.mark.unit
    def test_latitude_projection(self):
        """Test latitudes map onto [0, 1] with north at 0."""
        assert lat_y(0) == pytest.approx(0.5)
        assert lat_y(60) < lat_y(30) < lat_y(-30)
        assert y_lat(lat_y(37.5665)) == pytest.approx(37.5665)

    @pytest.mark.unit
    def test_latitude_projection_is_clamped_at_the_poles(self):
        """Test the poles clamp instead of diverging."""
        assert lat_y(90) == 0.0
        assert lat_y(-90) == 1.0
        assert 0.0 <= lat_y(89.9) <= 1.0


class TestClusteringEngine:
    """Test suite for ClusteringEngine."""

    def setup_method(self):
        """Set up test fixtures."""
        self.config = ClusterConfig()

    @pytest.mark.unit
    def test_invalid_configuration(self, mock_logger):
        """Test that impossible parameters are rejected up front."""
        with pytest.raises(ConfigurationError):
            ClusteringEngine(ClusterConfig(min_zoom=5, max_zoom=4), mock_logger)
        with pytest.raises(ConfigurationError):
            ClusteringEngine(ClusterConfig(min_zoom=-1), mock_logger)
        with pytest.raises(ConfigurationError):
            ClusteringEngine(ClusterConfig(radius=0), mock_logger)
        with pytest.raises(ConfigurationError):
            ClusteringEngine(ClusterConfig(min_points=1), mock_logger)

    @pytest.mark.unit
    def test_empty_index(self, mock_logger):
        """Test that an index of no photos has no levels."""
        index = ClusteringEngine(self.config, mock_logger).build([])

        assert isinstance(index, SpatialIndex)
        assert len(index) == 0
        assert index.level(5) is None
        assert index.cluster_count == 0

    @pytest.mark.unit
    def test_single_photo_never_clusters(self, mock_logger, photo_factory):
        """Test that one photo is a plain node at every zoom."""
        photo = photo_factory("only", 37.5, 127.0)
        index = ClusteringEngine(self.config, mock_logger).build([photo])

        for zoom in range(self.config.min_zoom, self.config.max_zoom + 1):
            level = index.level(zoom)
            assert len(level) == 1
            assert level.nodes[0].photo is photo
        assert index.cluster_count == 0

    @pytest.mark.unit
    def test_max_zoom_level_holds_raw_photos(self, mock_logger, nearby_photos):
        """Test that photos are never merged at max_zoom."""
        index = ClusteringEngine(self.config, mock_logger).build(nearby_photos)

        level = index.level(self.config.max_zoom)
        assert [node.photo for node in level.nodes] == nearby_photos

    @pytest.mark.unit
    def test_nearby_photos_merge_below_max_zoom(self, mock_logger, nearby_photos):
        """Test that photos meters apart form one cluster of 3 once zoomed out."""
        index = ClusteringEngine(self.config, mock_logger).build(nearby_photos)

        for zoom in range(self.config.min_zoom, self.config.max_zoom):
            level = index.level(zoom)
            assert len(level) == 1
            node = level.nodes[0]
            assert node.is_cluster
            assert node.count == 3
            assert set(node.leaf_ids) == {"a", "b", "c"}

    @pytest.mark.unit
    def test_levels_partition_the_photos(self, mock_logger, spread_photos):
        """Test that every level covers each photo exactly once."""
        index = ClusteringEngine(self.config, mock_logger).build(spread_photos)
        all_ids = sorted(photo.id for photo in spread_photos)

        for zoom in range(self.config.min_zoom, self.config.max_zoom + 1):
            leaf_ids = [leaf for node in index.level(zoom).nodes for leaf in node.leaf_ids]
            assert sorted(leaf_ids) == all_ids
            assert sum(node.count for node in index.level(zoom).nodes) == len(all_ids)

    @pytest.mark.unit
    def test_node_count_does_not_grow_when_zooming_out(self, mock_logger, spread_photos):
        """Test that coarser levels never hold more nodes than finer ones."""
        index = ClusteringEngine(self.config, mock_logger).build(spread_photos)

        sizes = [len(index.level(zoom)) for zoom in range(0, self.config.max_zoom + 1)]
        assert sizes == sorted(sizes)
        assert sizes[-1] == len(spread_photos)
        assert sizes[0] < len(spread_photos)

    @pytest.mark.unit
    def test_clusters_nest_across_levels(self, mock_logger, spread_photos):
        """Test that each cluster's children come from the next finer level."""
        index = ClusteringEngine(self.config, mock_logger).build(spread_photos)

        for zoom in range(self.config.min_zoom, self.config.max_zoom):
            finer_nodes = {id(node) for node in index.level(zoom + 1).nodes}
            for node in index.level(zoom).nodes:
                if node.is_cluster and node.zoom == zoom:
                    assert all(id(child) in finer_nodes for child in node.children)
                    assert sum(child.count for child in node.children) == node.count

    @pytest.mark.unit
    def test_centroid_is_weighted_by_count(self, mock_logger, photo_factory):
        """
        Test centroid weighting.

        Two photos on the same spot merge first; when the third joins, the
        pair weighs twice as much as the single photo.
        """
        photos = [
            photo_factory("p1", 0.0, 0.0),
            photo_factory("p2", 0.0, 0.0),
            photo_factory("p3", 0.0, 0.0009),
        ]
        index = ClusteringEngine(self.config, mock_logger).build(photos)

        node = index.level(10).nodes[0]
        assert node.count == 3
        assert node.lng == pytest.approx(0.0003, abs=1e-9)
        assert node.lat == pytest.approx(0.0, abs=1e-9)

    @pytest.mark.unit
    def test_build_is_deterministic(self, mock_logger, spread_photos):
        """Test that the same photos build the same clusters with the same ids."""
        engine = ClusteringEngine(self.config, mock_logger)
        first = engine.build(spread_photos)
        second = engine.build(spread_photos)

        for zoom in range(self.config.min_zoom, self.config.max_zoom + 1):
            first_nodes = [(n.cluster_id, n.leaf_ids, n.x, n.y) for n in first.level(zoom).nodes]
            second_nodes = [(n.cluster_id, n.leaf_ids, n.x, n.y) for n in second.level(zoom).nodes]
            assert first_nodes == second_nodes

    @pytest.mark.unit
    def test_build_returns_new_snapshots(self, mock_logger, spread_photos, photo_factory):
        """Test that rebuilding leaves an earlier index untouched."""
        engine = ClusteringEngine(self.config, mock_logger)
        first = engine.build(spread_photos)
        second = engine.build(spread_photos + [photo_factory("extra", 10.0, 10.0)])

        assert len(first) == len(spread_photos)
        assert len(second) == len(spread_photos) + 1
        assert first.photo("extra") is None
        assert second.photo("extra") is not None

    @pytest.mark.unit
    def test_min_points_holds_back_small_groups(self, mock_logger, nearby_photos):
        """Test that groups below min_points are left as single photos."""
        config = ClusterConfig(min_points=4)
        index = ClusteringEngine(config, mock_logger).build(nearby_photos)

        level = index.level(5)
        assert len(level) == 3
        assert not any(node.is_cluster for node in level.nodes)


class TestSpatialIndex:
    """Test suite for SpatialIndex lookups."""

    @pytest.fixture(autouse=True)
    def build_index(self, mock_logger, spread_photos):
        self.index = ClusteringEngine(ClusterConfig(), mock_logger).build(spread_photos)

    @pytest.mark.unit
    def test_limit_zoom(self):
        """Test zoom values are floored and clamped to the precomputed range."""
        assert self.index.limit_zoom(5.9) == 5
        assert self.index.limit_zoom(-3) == 0
        assert self.index.limit_zoom(22) == 16
        assert self.index.limit_zoom(math.inf) == 16

    @pytest.mark.unit
    def test_get_cluster_and_leaves(self):
        """Test that every cluster's leaves resolve to photos."""
        for zoom in range(0, 16):
            for node in self.index.level(zoom).nodes:
                if node.is_cluster:
                    assert self.index.get_cluster(node.cluster_id) is node
                    leaves = self.index.leaves(node.cluster_id)
                    assert len(leaves) == node.count
                    assert len({photo.id for photo in leaves}) == node.count

    @pytest.mark.unit
    def test_unknown_cluster(self):
        """Test that unknown cluster ids raise ClusterNotFoundError."""
        with pytest.raises(ClusterNotFoundError):
            self.index.get_cluster("cluster-99-0")
        with pytest.raises(ClusterNotFoundError):
            self.index.leaves("seoul-1")

    @pytest.mark.unit
    def test_range_is_inclusive(self, photo_factory, mock_logger):
        """Test that a node exactly on the rectangle edge is returned."""
        photo = photo_factory("edge", 37.5665, 126.978)
        index = ClusteringEngine(ClusterConfig(), mock_logger).build([photo])
        level = index.level(16)
        x, y = lng_x(126.978), lat_y(37.5665)

        assert level.range(x, y, x, y) == [0]
        assert level.range(x, y - 0.1, x + 0.1, y) == [0]
        assert level.range(x + 1e-9, y, x + 0.1, y + 0.1) == []
