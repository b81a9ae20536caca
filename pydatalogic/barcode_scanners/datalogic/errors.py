from pydatalogic.barcode_scanners.backend import BarcodeScannerError


class DatalogicError(BarcodeScannerError):
  """Base exception for errors talking to a Datalogic reader."""


class DatalogicConnectionError(DatalogicError, ConnectionError):
  """The TCP connection to the reader could not be established.

  The transport error is available as `__cause__`. No command bytes were sent.
  """


class DatalogicTimeoutError(DatalogicError, TimeoutError):
  """The reader did not send anything within the timeout."""


class DatalogicTransportError(DatalogicError):
  """Writing to or reading from an established connection failed.

  The transport error is available as `__cause__`.
  """
