from abc import ABCMeta, abstractmethod

from pydatalogic.machines.backend import MachineBackend


class BarcodeScannerError(Exception):
  """Error raised by a barcode scanner backend."""


class BarcodeScannerBackend(MachineBackend, metaclass=ABCMeta):
  """Abstract backend for barcode scanners."""

  @abstractmethod
  async def scan_barcode(self) -> str:
    """Trigger a read and return the decoded response."""
