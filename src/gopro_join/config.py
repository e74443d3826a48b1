"""
Configuration management for chapter merging
"""

from dataclasses import dataclass, field, asdict
from typing import List, Optional
from pathlib import Path
import yaml
import psutil

from gopro_join.exceptions import ConfigurationError


REPORTERS = ("progressbar", "json")


@dataclass
class FFmpegConfig:
    """Configuration for the external ffmpeg/ffprobe binaries"""
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"


@dataclass
class OutputConfig:
    """Configuration for output and reporting"""
    reporter: str = "progressbar"  # 'progressbar' or 'json'
    cleanup_partial: bool = False  # delete output of a failed merge
    keep_diagnostics: bool = False  # keep ffmpeg logs of successful merges
    diagnostics_dir: Optional[str] = None  # None = output directory


@dataclass
class LoggingConfig:
    """Configuration for logging"""
    level: str = "WARNING"
    file: Optional[str] = None


@dataclass
class MergeConfig:
    """Main configuration class"""
    parallel: int = 0  # 0 = auto
    extensions: List[str] = field(default_factory=list)  # empty = any extension

    ffmpeg: FFmpegConfig = field(default_factory=FFmpegConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Validate and adjust configuration after initialization"""
        self._validate()

        # Auto-calculate workers if set to 0
        if self.parallel == 0:
            self.parallel = self._calculate_optimal_workers()

    @staticmethod
    def _calculate_optimal_workers() -> int:
        """Number of merges to run at once: one per logical CPU"""
        return psutil.cpu_count(logical=True) or 1

    def _validate(self):
        """Validate configuration values"""
        if isinstance(self.parallel, bool) or not isinstance(self.parallel, int):
            raise ConfigurationError(f"parallel must be an integer, got {self.parallel!r}")

        if self.parallel < 0:
            raise ConfigurationError("parallel must be a positive integer (or 0 for auto)")

        if self.output.reporter not in REPORTERS:
            raise ConfigurationError(
                f"Invalid reporter: {self.output.reporter}. "
                f"Must be one of: {', '.join(REPORTERS)}"
            )

        if self.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Invalid logging level: {self.logging.level}")

        self.extensions = [ext.lower().lstrip('.') for ext in self.extensions]

    @classmethod
    def from_yaml(cls, path: str) -> 'MergeConfig':
        """Load configuration from YAML file"""
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f) or {}

            # Parse nested configs
            config_dict = {
                'parallel': data.get('merge', {}).get('parallel', 0),
                'extensions': data.get('merge', {}).get('extensions', []) or [],
                'ffmpeg': FFmpegConfig(**data.get('ffmpeg', {})),
                'output': OutputConfig(**data.get('output', {})),
                'logging': LoggingConfig(**data.get('logging', {}))
            }
        except (OSError, TypeError, AttributeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}")

        return cls(**config_dict)

    def to_yaml(self, path: str):
        """Save configuration to YAML file"""
        config_dict = asdict(self)

        yaml_dict = {
            'merge': {
                'parallel': config_dict['parallel'],
                'extensions': config_dict['extensions']
            },
            'ffmpeg': config_dict['ffmpeg'],
            'output': config_dict['output'],
            'logging': config_dict['logging']
        }

        with open(path, 'w') as f:
            yaml.dump(yaml_dict, f, default_flow_style=False, sort_keys=False)
