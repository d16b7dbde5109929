"""Export of render nodes to CSV and KML formats."""

import csv
import logging
from pathlib import Path
from typing import Sequence

try:
    from fastkml.kml import KML
    from fastkml.containers import Document, Folder
    from fastkml.views import LookAt
    from fastkml.features import Placemark
    from pygeoif.geometry import Point
    KML_AVAILABLE = True
except ImportError:
    KML_AVAILABLE = False
    KML = None
    Document = None
    Folder = None
    LookAt = None
    Placemark = None
    Point = None

from .constants import Constants
from .exceptions import FileOperationError
from .types import ClusterNode, RenderNode


class ExportManager:
    """Base class for export functionality."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger


class CSVExporter(ExportManager):
    """Writes one CSV row per render node."""

    FIELDNAMES = ["kind", "id", "latitude", "longitude", "count", "photos"]

    def export_nodes(self, nodes: Sequence[RenderNode], csv_path: str | Path) -> bool:
        """
        Export render nodes to a CSV file.

        The photos column holds the photo file name for points and the
        space-separated member photo ids for clusters.

        Raises:
            FileOperationError: If the file cannot be written
        """
        if not nodes:
            self.logger.info("No nodes to export to CSV.")
            return False

        try:
            with open(csv_path, "w", newline="", encoding="utf-8") as csvfile:
                writer = csv.DictWriter(csvfile, fieldnames=self.FIELDNAMES)
                writer.writeheader()
                writer.writerows(self._row(node) for node in nodes)
        except (OSError, IOError) as e:
            self.logger.error(f"Error writing CSV file: {e}")
            raise FileOperationError(f"Could not write {csv_path}: {e}") from e

        self.logger.info(f"Exported {len(nodes)} nodes to {csv_path}")
        return True

    @staticmethod
    def _row(node: RenderNode) -> dict:
        if isinstance(node, ClusterNode):
            photos = " ".join(node.member_photo_ids)
        else:
            photos = node.photo.name
        return {
            "kind": node.kind,
            "id": node.id,
            "latitude": f"{node.lat:.6f}",
            "longitude": f"{node.lng:.6f}",
            "count": node.count,
            "photos": photos,
        }


class KMLExporter(ExportManager):
    """Handles KML export of render nodes."""

    def __init__(self, logger: logging.Logger):
        super().__init__(logger)
        if not KML_AVAILABLE:
            self.logger.warning("KML export not available. Install 'fastkml' and 'pygeoif' packages.")

    def build_kml_from_nodes(self, nodes: Sequence[RenderNode], folder_name: str = "Photos") -> str:
        """
        Build KML content with one placemark per node.

        Raises:
            ImportError: If fastkml is not installed
            ValueError: If nodes is empty
        """
        if not KML_AVAILABLE:
            raise ImportError("KML export not available. Install 'fastkml' and 'pygeoif' packages.")

        if not nodes:
            raise ValueError("No nodes provided for KML export")

        k = KML()
        doc = Document(
            id="photo_cluster_map",
            name="Photo Cluster Map",
            description="Clustered geotagged photos",
        )
        k.append(doc)

        photo_total = sum(node.count for node in nodes)
        folder = Folder(
            name=folder_name,
            description=f"{len(nodes)} markers covering {photo_total} photos",
        )
        doc.append(folder)

        for node in nodes:
            if isinstance(node, ClusterNode):
                name = f"{node.count} photos"
                description = f"Cluster {node.id}"
                view_range = Constants.KML_CLUSTER_VIEW_RANGE
            else:
                name = node.photo.name
                description = f'<![CDATA[<img style="max-width:500px;" src="{node.photo.url}">]]>'
                view_range = Constants.KML_POINT_VIEW_RANGE

            folder.append(
                Placemark(
                    name=name,
                    description=description,
                    geometry=Point(node.lng, node.lat, 0),
                    view=LookAt(range=view_range, latitude=node.lat, longitude=node.lng),
                )
            )

        return k.to_string(prettyprint=True)

    def export_nodes(self, nodes: Sequence[RenderNode], kml_path: str | Path) -> bool:
        """
        Write nodes to a KML file.

        Raises:
            FileOperationError: If the file cannot be written
        """
        if not nodes:
            self.logger.info("No nodes to export to KML.")
            return False

        kml_content = self.build_kml_from_nodes(nodes)
        # fastkml escapes the CDATA markup in descriptions
        kml_content = kml_content.replace("&lt;", "<").replace("&gt;", ">")
        try:
            with open(kml_path, "w", encoding="utf-8") as f:
                f.write(kml_content)
        except (OSError, IOError) as e:
            self.logger.error(f"Error writing KML file: {e}")
            raise FileOperationError(f"Could not write {kml_path}: {e}") from e

        self.logger.info(f"Exported {len(nodes)} nodes to {kml_path}")
        return True
