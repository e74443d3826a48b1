"""
Validation utilities for input/output directories
"""

import os
from pathlib import Path

from gopro_join.exceptions import ConfigurationError
from gopro_join.utils.logger import get_logger


logger = get_logger(__name__)


def validate_input_dir(input_dir: Path) -> Path:
    """
    Validate that the input directory exists and can be listed

    Args:
        input_dir: Directory holding the chapter files

    Returns:
        Resolved path to the directory

    Raises:
        ConfigurationError: If the directory is missing or unreadable
    """
    input_dir = Path(input_dir)

    if not input_dir.exists():
        raise ConfigurationError(f"Input directory not found: {input_dir}")

    if not input_dir.is_dir():
        raise ConfigurationError(f"Input path is not a directory: {input_dir}")

    if not os.access(input_dir, os.R_OK | os.X_OK):
        raise ConfigurationError(f"Input directory is not readable: {input_dir}")

    logger.debug(f"Validated input directory: {input_dir}")
    return input_dir.resolve()


def validate_output_dir(output_dir: Path) -> Path:
    """
    Validate output directory, creating it if needed

    Args:
        output_dir: Directory the merged files are written to

    Returns:
        Resolved path to the directory

    Raises:
        ConfigurationError: If the directory cannot be created or written to
    """
    output_dir = Path(output_dir)

    if output_dir.exists() and not output_dir.is_dir():
        raise ConfigurationError(f"Output path is not a directory: {output_dir}")

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create output directory {output_dir}: {e}")

    if not os.access(output_dir, os.W_OK | os.X_OK):
        raise ConfigurationError(f"Output directory is not writable: {output_dir}")

    logger.debug(f"Validated output directory: {output_dir}")
    return output_dir.resolve()
