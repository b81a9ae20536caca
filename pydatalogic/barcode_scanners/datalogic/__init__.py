from .barcode_scanner_backend import DatalogicBarcodeScannerBackend
from .errors import (
  DatalogicConnectionError,
  DatalogicError,
  DatalogicTimeoutError,
  DatalogicTransportError,
)
from .session import (
  start_one_shot_mode,
  start_one_shot_mode_async,
  start_phase_mode,
  start_phase_mode_async,
)
