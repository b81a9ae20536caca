import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pydatalogic.io.log_levels import LOG_LEVEL_IO

LOG_FROM_STRING = {
  "IO": LOG_LEVEL_IO,
  "DEBUG": logging.DEBUG,
  "INFO": logging.INFO,
  "WARNING": logging.WARNING,
  "ERROR": logging.ERROR,
  "CRITICAL": logging.CRITICAL,
}

LOG_TO_STRING = {v: k for k, v in LOG_FROM_STRING.items()}


@dataclass
class Config:
  """The configuration object for pydatalogic."""

  @dataclass
  class Logging:
    """The logging configuration."""

    level: int = logging.INFO
    log_dir: Optional[Path] = None

  @dataclass
  class Session:
    """Defaults for device sessions.

    Attributes:
      connect_timeout: seconds to wait for the TCP connection to be established.
      poll_interval: seconds to idle between availability checks in the blocking operations.
    """

    connect_timeout: float = 5.0
    poll_interval: float = 0.001

  logging: Logging = field(default_factory=Logging)
  session: Session = field(default_factory=Session)

  @classmethod
  def from_dict(cls, d: dict) -> "Config":
    log_data = d.get("logging", {})
    session_data = d.get("session", {})
    return cls(
      logging=cls.Logging(
        level=LOG_FROM_STRING[log_data.get("level", "INFO")],
        log_dir=Path(log_data["log_dir"]) if log_data.get("log_dir") is not None else None,
      ),
      session=cls.Session(
        connect_timeout=float(session_data.get("connect_timeout", cls.Session.connect_timeout)),
        poll_interval=float(session_data.get("poll_interval", cls.Session.poll_interval)),
      ),
    )

  @property
  def as_dict(self) -> dict:
    return {
      "logging": {
        "level": LOG_TO_STRING[self.logging.level],
        "log_dir": str(self.logging.log_dir) if self.logging.log_dir is not None else None,
      },
      "session": {
        "connect_timeout": self.session.connect_timeout,
        "poll_interval": self.session.poll_interval,
      },
    }
