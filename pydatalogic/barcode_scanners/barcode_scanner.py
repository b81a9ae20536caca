from pydatalogic.barcode_scanners.backend import BarcodeScannerBackend
from pydatalogic.machines.machine import Machine, need_setup_finished


class BarcodeScanner(Machine):
  """Frontend for barcode scanners.

  Example:
    >>> backend = DatalogicBarcodeScannerBackend(host="192.168.3.100", port=51236,
    ...   start_command="\\x02TRIGGER\\x03")
    >>> async with BarcodeScanner(backend=backend) as scanner:
    ...   code = await scanner.scan()
  """

  def __init__(self, backend: BarcodeScannerBackend):
    super().__init__(backend=backend)
    self.backend: BarcodeScannerBackend = backend

  @need_setup_finished
  async def scan(self) -> str:
    """Scan a barcode and return its value."""
    return await self.backend.scan_barcode()
