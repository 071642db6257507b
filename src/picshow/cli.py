"""
Command-Line Interface for picshow.

This module handles parsing of command-line arguments, sets up logging,
wires the file-based collaborators into a `SlideshowController` and runs the
Tkinter window.
"""

import argparse
import dataclasses
import importlib.metadata
import logging
import sys
import tkinter as tk
from pathlib import Path

import coloredlogs

from . import config
from .app import SlideshowWindow
from .controller import SlideshowController
from .exif_utils import ExifMetadataSource
from .image_loader import FolderImageSource
from .settings import ConfigurationStore, JsonFileBackend
from .starring import FileStarStore

# Setup a dedicated logger for this application
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="picshow",
        description="A slideshow viewer for folders of images, with starring and EXIF overlay.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"%(prog)s {importlib.metadata.version('picshow')}",
        help="Show the version number and exit."
    )
    parser.add_argument(
        "image_folder",
        type=str,
        nargs='?',
        default=None,
        help="The folder containing images to display.\n"
             "Defaults to the last folder opened."
    )
    parser.add_argument(
        "-d", "--delay",
        type=float,
        default=None,
        help=f"Seconds between images ({config.MIN_TRANSITION_INTERVAL:.0f}-{config.MAX_TRANSITION_INTERVAL:.0f}).\n"
             f"Saved as the new default. Default: {config.DEFAULT_TRANSITION_INTERVAL:.0f}"
    )
    parser.add_argument(
        "--starred-only",
        action="store_true",
        help="Only show starred images (saved as the new default)."
    )
    parser.add_argument(
        "--play",
        action="store_true",
        help="Start playback as soon as the folder is loaded."
    )
    parser.add_argument(
        "--fullscreen",
        action="store_true",
        help="Start in fullscreen mode."
    )
    parser.add_argument(
        "--instance-id",
        type=str,
        default=None,
        help="Keep settings separate from other running copies under this name."
    )
    parser.add_argument(
        "--settings-file",
        type=Path,
        default=config.DEFAULT_SETTINGS_FILE,
        help=f"Where settings are stored. Default: {config.DEFAULT_SETTINGS_FILE}"
    )
    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default=config.DEFAULT_LOG_LEVEL,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help=f"Set the logging level. Default: {config.DEFAULT_LOG_LEVEL}"
    )
    return parser


def setup_logging(log_level: str) -> None:
    log_level_upper = log_level.upper()
    level = getattr(logging, log_level_upper, logging.INFO)
    # Configure root logger
    logging.basicConfig(level=level)
    # Install coloredlogs for the whole package
    coloredlogs.install(
        level=log_level_upper,
        logger=logging.getLogger('picshow'),
        fmt='%(asctime)s %(levelname)-8s %(name)s: %(message)s'
    )
    logging.getLogger().setLevel(level)


def main():
    """
    The main entry point for the application.

    Parses command-line arguments, sets up logging, builds the controller and
    its collaborators, and starts the slideshow window.
    """
    args = build_parser().parse_args()
    setup_logging(args.log_level)

    try:
        root = tk.Tk()
        # Hide the main window until it is fully set up
        root.withdraw()

        controller = SlideshowController(
            window=root,
            image_source=FolderImageSource(),
            config_store=ConfigurationStore(JsonFileBackend(args.settings_file), instance_id=args.instance_id),
            star_store=FileStarStore(),
            metadata_source=ExifMetadataSource(),
        )

        overrides = {}
        if args.delay is not None:
            overrides['transition_interval'] = args.delay
        if args.starred_only:
            overrides['starred_only'] = True
        if overrides:
            controller.set_configuration(dataclasses.replace(controller.configuration, **overrides))

        app = SlideshowWindow(root, controller, fullscreen=args.fullscreen)

        folder = args.image_folder or controller.configuration.last_folder
        if folder:
            controller.load_folder(folder, autoplay=args.play)
        else:
            logger.info("No folder given and none remembered; press 'o' to open one.")

        root.deiconify()
        app.run()

    except Exception as e:
        logger.critical(f"An unexpected error occurred: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
