from .backend import BarcodeScannerBackend, BarcodeScannerError
from .barcode_scanner import BarcodeScanner
from .datalogic import (
  DatalogicBarcodeScannerBackend,
  DatalogicConnectionError,
  DatalogicError,
  DatalogicTimeoutError,
  DatalogicTransportError,
  start_one_shot_mode,
  start_one_shot_mode_async,
  start_phase_mode,
  start_phase_mode_async,
)
