"""Configuration management for the photo cluster map application."""

import argparse
import logging
from pathlib import Path
from typing import Sequence

import tomllib

from .constants import Constants
from .exceptions import ConfigurationError, FileOperationError
from .types import (
    ApplicationConfig,
    BoundingBox,
    ClusterConfig,
    DirectoryConfig,
    IngestConfig,
    OutputConfig,
    ViewportConfig,
)


SAMPLE_CONFIG = """# Photo Cluster Map Configuration File
# Save this as photo_cluster_map.toml in your working directory,
# ~/.config/photo_cluster_map/config.toml, or ~/.photo_cluster_map.toml

[directories]
root = "/path/to/photos"   # Directory to ingest images from
recursive = true           # Include subfolders

[viewport]
# Use either a bbox, an address, or latitude/longitude (checked in that order)
# bbox = [126.0, 33.0, 130.0, 38.7]   # west, south, east, north in degrees
address = "Seoul, South Korea"
# latitude = 37.5665
# longitude = 126.9780
radius = 25.0              # Miles around the address or coordinates
zoom = 7                   # Map zoom level to cluster at

[clustering]
radius = 40                # Cluster radius in pixels
min_zoom = 0
max_zoom = 16              # Photos are never merged at or above this zoom
extent = 512               # Tile extent the radius is measured against
min_points = 2

[ingestion]
batch_size = 10            # Files extracted concurrently per batch

[output]
# export_kml = "clusters.kml"
# export_csv = "clusters.csv"
verbose = false
"""


class ConfigurationManager:
    """
    Builds an ApplicationConfig from command-line arguments and an optional TOML file.

    Values given on the command line win over values from the file; anything
    still unset falls back to the defaults in Constants.
    """

    # (toml_section, arg_name, toml_field, merge_strategy)
    FIELD_MAPPINGS = [
        ("directories", "root", "root", "none_check"),
        ("viewport", "bbox", "bbox", "none_check"),
        ("viewport", "address", "address", "none_check"),
        ("viewport", "latitude", "latitude", "none_check"),
        ("viewport", "longitude", "longitude", "none_check"),
        ("viewport", "radius", "radius", "none_check"),
        ("viewport", "zoom", "zoom", "none_check"),
        ("clustering", "cluster_radius", "radius", "none_check"),
        ("clustering", "min_zoom", "min_zoom", "none_check"),
        ("clustering", "max_zoom", "max_zoom", "none_check"),
        ("clustering", "extent", "extent", "none_check"),
        ("clustering", "min_points", "min_points", "none_check"),
        ("ingestion", "batch_size", "batch_size", "none_check"),
        ("output", "export_kml", "export_kml", "none_check"),
        ("output", "export_csv", "export_csv", "none_check"),
        ("output", "verbose", "verbose", "boolean_false_to_true"),
    ]

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def parse_arguments_and_config(self, argv: Sequence[str] | None = None) -> ApplicationConfig | None:
        """
        Parse arguments, merge the TOML configuration, validate and build the config.

        Returns:
            The ApplicationConfig, or None when only a sample config file was written

        Raises:
            ConfigurationError: If required values are missing or invalid
        """
        args = self._create_argument_parser().parse_args(argv)

        if args.create_config:
            self._create_sample_config(args.create_config)
            return None

        config_data = self._load_config_file(args.config)
        if config_data:
            self._merge_config_with_args(config_data, args)

        if not args.root:
            raise ConfigurationError("Root directory (-d/--root) is required")

        app_config = self._build_application_config(args)
        self._validate_configuration(app_config)
        return app_config

    def _create_argument_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser. Option defaults are None so the TOML file can fill them."""
        parser = argparse.ArgumentParser(
            prog="photo-cluster-map",
            description="Ingests geotagged images and clusters them for a map viewport.",
            epilog="Examples:\n"
            "  %(prog)s -d /photos -a 'Seoul' -r 20 -z 9\n"
            "  %(prog)s -d /photos --bbox 126 33 130 38.7 -z 7 --export-kml clusters.kml\n"
            "  %(prog)s -d /photos -t 37.5665 -g 126.978 --max-zoom 14 -v\n"
            "  %(prog)s --create-config  # Create sample config file\n\n"
            "Configuration files (TOML format) are searched in this order:\n"
            "  1. Path specified with --config\n"
            "  2. ./photo_cluster_map.toml\n"
            "  3. ~/.config/photo_cluster_map/config.toml\n"
            "  4. ~/.photo_cluster_map.toml",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "-d", "--root", help="(required) directory of images to ingest"
        )
        parser.add_argument(
            "--no-recursive", action="store_true", help="don't ingest images from subfolders"
        )

        viewport = parser.add_argument_group("viewport")
        viewport.add_argument(
            "--bbox",
            type=float,
            nargs=4,
            metavar=("WEST", "SOUTH", "EAST", "NORTH"),
            help="bounding box to query, in degrees",
        )
        viewport.add_argument("-a", "--address", help="address to center the viewport on")
        viewport.add_argument("-t", "--latitude", type=float, help="decimal latitude of the viewport center")
        viewport.add_argument("-g", "--longitude", type=float, help="decimal longitude of the viewport center")
        viewport.add_argument(
            "-r",
            "--radius",
            type=float,
            help=f"miles around the center (default {Constants.DEFAULT_RADIUS_MILES})",
        )
        viewport.add_argument(
            "-z", "--zoom", type=float, help=f"zoom level (default {Constants.DEFAULT_VIEWPORT_ZOOM})"
        )

        clustering = parser.add_argument_group("clustering")
        clustering.add_argument(
            "--cluster-radius",
            type=float,
            help=f"cluster radius in pixels (default {Constants.DEFAULT_CLUSTER_RADIUS})",
        )
        clustering.add_argument("--min-zoom", type=int, help=f"default {Constants.DEFAULT_MIN_ZOOM}")
        clustering.add_argument(
            "--max-zoom",
            type=int,
            help=f"zoom at which photos stop merging (default {Constants.DEFAULT_MAX_ZOOM})",
        )
        clustering.add_argument("--extent", type=int, help=f"default {Constants.DEFAULT_EXTENT}")
        clustering.add_argument("--min-points", type=int, help=f"default {Constants.DEFAULT_MIN_POINTS}")

        parser.add_argument(
            "--batch-size",
            type=int,
            help=f"files extracted concurrently (default {Constants.DEFAULT_BATCH_SIZE})",
        )
        parser.add_argument("--export-kml", help="write the viewport's nodes to this KML file")
        parser.add_argument("--export-csv", help="write the viewport's nodes to this CSV file")
        parser.add_argument("-v", "--verbose", action="store_true", help="print additional information")
        parser.add_argument("--config", help="Path to TOML configuration file (optional)")
        parser.add_argument(
            "--create-config",
            nargs="?",
            const="photo_cluster_map.toml",
            help="Create a sample configuration file and exit (optionally specify path)",
        )
        return parser

    def _load_config_file(self, config_path: str | Path | None = None) -> dict:
        """
        Load the first readable TOML file from the explicit path and the standard locations.

        Returns an empty dict when none is found.
        """
        config_locations = []
        if config_path:
            config_locations.append(Path(config_path))

        config_locations.extend(
            [
                Path.cwd() / "photo_cluster_map.toml",
                Path.home() / ".config" / "photo_cluster_map" / "config.toml",
                Path.home() / ".photo_cluster_map.toml",
            ]
        )

        for config_file in config_locations:
            if config_file.exists():
                try:
                    with open(config_file, "rb") as f:
                        config_data = tomllib.load(f)
                    self.logger.info(f"Loaded configuration from: {config_file}")
                    return config_data
                except (OSError, IOError) as e:
                    self.logger.warning(f"Could not load config file {config_file}: {e}")
                except tomllib.TOMLDecodeError as e:
                    self.logger.warning(f"Could not parse config file {config_file}: {e}")

        return {}

    def _merge_config_with_args(self, config_data: dict, args: argparse.Namespace) -> None:
        """Fill unset arguments from the TOML sections."""
        for mapping in self.FIELD_MAPPINGS:
            self._apply_field_mapping(config_data, args, mapping)

        # Inverse logic: recursive = false in the file means --no-recursive
        if not args.no_recursive and config_data.get("directories", {}).get("recursive", True) is False:
            args.no_recursive = True

    def _apply_field_mapping(self, config_data: dict, args: argparse.Namespace, mapping: tuple) -> None:
        """
        Apply one (section, arg, field, strategy) mapping.

        Strategies:
            - "none_check": set the argument if it is None and the field exists.
            - "boolean_false_to_true": set the argument if it is False and the field is true.
        """
        toml_section, arg_name, toml_field, merge_strategy = mapping
        section_data = config_data.get(toml_section, {})

        if merge_strategy == "none_check":
            if getattr(args, arg_name, None) is None and toml_field in section_data:
                setattr(args, arg_name, section_data[toml_field])

        elif merge_strategy == "boolean_false_to_true":
            if not getattr(args, arg_name, False) and section_data.get(toml_field, False):
                setattr(args, arg_name, section_data[toml_field])

    def _build_application_config(self, args: argparse.Namespace) -> ApplicationConfig:
        """Create the configuration dataclasses from merged arguments."""

        def pick(value, default):
            return default if value is None else value

        bbox = None
        if args.bbox is not None:
            if len(args.bbox) != 4:
                raise ConfigurationError("bbox needs four values: west, south, east, north")
            try:
                bbox = BoundingBox(*(float(value) for value in args.bbox))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid bbox {args.bbox!r}: {e}") from e

        return ApplicationConfig(
            directory=DirectoryConfig(root=args.root, recursive=not args.no_recursive),
            viewport=ViewportConfig(
                bbox=bbox,
                address=args.address or None,
                latitude=args.latitude,
                longitude=args.longitude,
                radius=float(pick(args.radius, Constants.DEFAULT_RADIUS_MILES)),
                zoom=float(pick(args.zoom, Constants.DEFAULT_VIEWPORT_ZOOM)),
            ),
            clustering=ClusterConfig(
                radius=float(pick(args.cluster_radius, Constants.DEFAULT_CLUSTER_RADIUS)),
                min_zoom=int(pick(args.min_zoom, Constants.DEFAULT_MIN_ZOOM)),
                max_zoom=int(pick(args.max_zoom, Constants.DEFAULT_MAX_ZOOM)),
                extent=int(pick(args.extent, Constants.DEFAULT_EXTENT)),
                min_points=int(pick(args.min_points, Constants.DEFAULT_MIN_POINTS)),
            ),
            ingestion=IngestConfig(batch_size=int(pick(args.batch_size, Constants.DEFAULT_BATCH_SIZE))),
            output=OutputConfig(
                export_kml=args.export_kml or None,
                export_csv=args.export_csv or None,
                verbose=bool(args.verbose),
            ),
        )

    def _create_sample_config(self, output_path: str | Path | None = None) -> None:
        """
        Write the documented sample configuration.

        Raises:
            FileOperationError: If the file cannot be created
        """
        output_path = Path(output_path) if output_path else Path.cwd() / "photo_cluster_map.toml"
        try:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(SAMPLE_CONFIG)
            self.logger.info(f"Sample configuration file created: {output_path}")
            self.logger.info("Edit this file with your preferred settings.")
        except (OSError, IOError) as e:
            self.logger.error(f"Error creating sample config file: {e}")
            raise FileOperationError(f"Could not create config file: {e}") from e

    def _validate_configuration(self, app_config: ApplicationConfig) -> None:
        """
        Check ranges and combinations the components rely on.

        Raises:
            ConfigurationError: If any requirement is not met
        """
        viewport = app_config.viewport
        if (viewport.latitude is None) != (viewport.longitude is None):
            raise ConfigurationError("--latitude and --longitude must be given together")
        if viewport.latitude is not None and not -90 <= viewport.latitude <= 90:
            raise ConfigurationError(f"Latitude out of range: {viewport.latitude}")
        if viewport.longitude is not None and not -180 <= viewport.longitude <= 180:
            raise ConfigurationError(f"Longitude out of range: {viewport.longitude}")
        if viewport.radius <= 0:
            raise ConfigurationError("--radius must be positive")
        if viewport.bbox is not None:
            west, south, east, north = viewport.bbox
            if not (-90 <= south <= 90 and -90 <= north <= 90) or south > north:
                raise ConfigurationError(f"Invalid bbox latitudes: south={south}, north={north}")

        clustering = app_config.clustering
        if clustering.min_zoom < 0 or clustering.max_zoom < clustering.min_zoom:
            raise ConfigurationError(
                f"Invalid zoom range: {clustering.min_zoom}-{clustering.max_zoom}"
            )
        if clustering.radius <= 0 or clustering.extent <= 0:
            raise ConfigurationError("--cluster-radius and --extent must be positive")
        if clustering.min_points < 2:
            raise ConfigurationError("--min-points must be at least 2")

        if app_config.ingestion.batch_size < 1:
            raise ConfigurationError("--batch-size must be at least 1")
