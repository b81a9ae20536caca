import logging
from typing import Optional

from pydatalogic.barcode_scanners.backend import BarcodeScannerBackend
from pydatalogic.barcode_scanners.datalogic.session import (
  start_one_shot_mode_async,
  start_phase_mode_async,
)

logger = logging.getLogger(__name__)


class DatalogicBarcodeScannerBackend(BarcodeScannerBackend):
  """Backend for Datalogic barcode readers on a TCP host channel.

  The reader must be configured (with the vendor's configuration tool) to accept the given
  command strings on its TCP server port. When `stop_command` is given, scans run in phase mode;
  otherwise in one-shot mode.

  No connection is held between scans: every call to :meth:`scan_barcode` opens and closes its
  own.
  """

  def __init__(
    self,
    host: str,
    port: int,
    start_command: str,
    stop_command: Optional[str] = None,
    timeout_ms: int = 2000,
    connect_timeout: Optional[float] = None,
  ):
    super().__init__()
    self.host = host
    self.port = port
    self.start_command = start_command
    self.stop_command = stop_command
    self.timeout_ms = timeout_ms
    self.connect_timeout = connect_timeout

  @property
  def phase_mode(self) -> bool:
    return self.stop_command is not None

  async def setup(self):
    logger.info(
      "Datalogic reader at %s:%s uses %s mode",
      self.host,
      self.port,
      "phase" if self.phase_mode else "one-shot",
    )

  async def stop(self):
    pass

  async def scan_barcode(self) -> str:
    if self.stop_command is not None:
      return await start_phase_mode_async(
        self.host,
        self.port,
        self.start_command,
        self.stop_command,
        self.timeout_ms,
        connect_timeout=self.connect_timeout,
      )
    return await start_one_shot_mode_async(
      self.host,
      self.port,
      self.start_command,
      self.timeout_ms,
      connect_timeout=self.connect_timeout,
    )

  def serialize(self) -> dict:
    return {
      **super().serialize(),
      "host": self.host,
      "port": self.port,
      "start_command": self.start_command,
      "stop_command": self.stop_command,
      "timeout_ms": self.timeout_ms,
      "connect_timeout": self.connect_timeout,
    }
