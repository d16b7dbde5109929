"""Main application module for photo cluster map."""

import asyncio
import logging
import sys
from typing import Sequence

from .constants import Constants
from .config import ConfigurationManager
from .exceptions import ConfigurationError, FileOperationError
from .export import CSVExporter, KMLExporter
from .library import PhotoLibrary
from .search import ViewportResolver
from .types import ApplicationConfig, ClusterNode, RenderNode
from .utils import FileScanner, LoggingSetup, ProgressReporter


class MapWorkflow:
    """Ingests a directory, clusters it, and reports one viewport."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def run(self, app_config: ApplicationConfig) -> list[RenderNode]:
        """Run the workflow and return the viewport's render nodes."""
        library = PhotoLibrary(app_config.clustering, app_config.ingestion, self.logger)

        files = FileScanner(self.logger).scan(
            app_config.directory.root, recursive=app_config.directory.recursive
        )
        photos = asyncio.run(library.ingest(files, on_progress=ProgressReporter(self.logger)))
        if not photos:
            self.logger.warning("No geotagged photos found")
            return []

        bbox = ViewportResolver(app_config.viewport, self.logger).resolve()
        nodes = library.query(bbox, app_config.viewport.zoom)
        self._report(nodes, app_config.output.verbose)
        self._handle_exports(nodes, app_config)
        return nodes

    def _report(self, nodes: Sequence[RenderNode], verbose: bool) -> None:
        clusters = [node for node in nodes if isinstance(node, ClusterNode)]
        self.logger.info(
            f"Viewport shows {len(nodes)} markers: {len(clusters)} clusters, "
            f"{len(nodes) - len(clusters)} single photos"
        )
        if verbose:
            for node in nodes:
                label = f"{node.count} photos" if isinstance(node, ClusterNode) else node.photo.name
                self.logger.info(f"  {node.kind:<7} {node.lat:10.5f} {node.lng:11.5f}  {label}")

    def _handle_exports(self, nodes: Sequence[RenderNode], app_config: ApplicationConfig) -> None:
        if app_config.output.export_csv:
            CSVExporter(self.logger).export_nodes(nodes, app_config.output.export_csv)
        if app_config.output.export_kml:
            KMLExporter(self.logger).export_nodes(nodes, app_config.output.export_kml)


def main(argv: Sequence[str] | None = None) -> None:
    """Command line entry point."""
    logger = LoggingSetup.setup_logging()

    try:
        app_config = ConfigurationManager(logger).parse_arguments_and_config(argv)
        if app_config is None:
            sys.exit(Constants.ErrorCodes.SUCCESS)

        if app_config.output.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        nodes = MapWorkflow(logger).run(app_config)
        if not nodes:
            sys.exit(Constants.ErrorCodes.NO_PHOTOS_FOUND)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(Constants.ErrorCodes.INTERRUPTED)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(Constants.ErrorCodes.CONFIGURATION_ERROR)
    except FileOperationError as e:
        logger.error(f"File operation error: {e}")
        sys.exit(Constants.ErrorCodes.FILE_OPERATION_ERROR)
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error(f"Unexpected error: {e}")
        sys.exit(Constants.ErrorCodes.GENERAL_ERROR)

    sys.exit(Constants.ErrorCodes.SUCCESS)


if __name__ == "__main__":
    main()
