"""
Utility modules for chapter merging
"""

from .logger import setup_logger, get_logger
from .ffmpeg_utils import probe_duration, build_concat_command, write_concat_manifest
from .validators import validate_input_dir, validate_output_dir

__all__ = [
    'setup_logger',
    'get_logger',
    'probe_duration',
    'build_concat_command',
    'write_concat_manifest',
    'validate_input_dir',
    'validate_output_dir'
]
