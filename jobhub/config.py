#!/usr/bin/env python3
"""
Hub configuration.

Defaults live under ``~/.jobhub``; every field can be overridden from the
environment with :meth:`HubConfig.from_env`.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

DEFAULT_HOME = Path.home() / ".jobhub"


def _default_db_path() -> Path:
    return DEFAULT_HOME / "jobhub.db"


def _default_log_dir() -> Path:
    return DEFAULT_HOME / "logs"


@dataclass(frozen=True)
class HubConfig:
    """
    Settings for a :class:`jobhub.core.hub.Hub`.

    :param db_path: SQLite database file
    :param log_dir: Directory receiving one transcript per job execution
    :param queue_delay: Seconds between ``queue_now`` and the one-shot fire
    :param shutdown_timeout: Seconds ``close`` waits for running jobs
    """

    db_path: Path = field(default_factory=_default_db_path)
    log_dir: Path = field(default_factory=_default_log_dir)
    queue_delay: float = 1.0
    shutdown_timeout: float = 5.0

    def __post_init__(self):
        object.__setattr__(self, "db_path", Path(self.db_path))
        object.__setattr__(self, "log_dir", Path(self.log_dir))
        if self.queue_delay < 0:
            raise ValueError(f"queue_delay must be >= 0, got {self.queue_delay}")
        if self.shutdown_timeout < 0:
            raise ValueError(
                f"shutdown_timeout must be >= 0, got {self.shutdown_timeout}"
            )

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "HubConfig":
        """
        Build a config from ``JOBHUB_*`` environment variables.

        :param environ: Mapping to read instead of ``os.environ``
        :return: HubConfig
        """
        env = os.environ if environ is None else environ
        kwargs = {}
        if env.get("JOBHUB_DB_PATH"):
            kwargs["db_path"] = Path(env["JOBHUB_DB_PATH"]).expanduser()
        if env.get("JOBHUB_LOG_DIR"):
            kwargs["log_dir"] = Path(env["JOBHUB_LOG_DIR"]).expanduser()
        if env.get("JOBHUB_QUEUE_DELAY"):
            kwargs["queue_delay"] = float(env["JOBHUB_QUEUE_DELAY"])
        if env.get("JOBHUB_SHUTDOWN_TIMEOUT"):
            kwargs["shutdown_timeout"] = float(env["JOBHUB_SHUTDOWN_TIMEOUT"])
        return cls(**kwargs)

    def with_overrides(self, **overrides) -> "HubConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)
