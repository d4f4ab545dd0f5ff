"""Domain-specific configuration accessors.

Each class provides typed, cached access to one section of the merged
configuration:

- TimeoutsConfig: bounded waits for external commands
- LoggingConfig: log level and log file
- PathsConfig: state directory, persisted records, generated config root
- BuildConfig: build-tool executable and working-copy flags
- PipelineConfig: default verification run options

Usage:
    from provision.core.config.domains import TimeoutsConfig

    timeouts = TimeoutsConfig(repo_root=Path("/path/to/project"))
    timeouts.git_operations_seconds
"""
from __future__ import annotations

from .build import BuildConfig
from .logging import LoggingConfig
from .paths import PathsConfig
from .pipeline import PipelineConfig
from .timeouts import TimeoutsConfig

__all__: list[str] = [
    "BuildConfig",
    "LoggingConfig",
    "PathsConfig",
    "PipelineConfig",
    "TimeoutsConfig",
]
