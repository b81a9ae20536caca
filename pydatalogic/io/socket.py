import asyncio
import logging
import select
import socket
import time
from dataclasses import dataclass
from typing import Optional

from pydatalogic.io.capture import Command, capturer
from pydatalogic.io.log_levels import LOG_LEVEL_IO

logger = logging.getLogger(__name__)

# Used when the OS does not report SO_RCVBUF.
DEFAULT_RECEIVE_BUFFER_SIZE = 8192


@dataclass
class SocketCommand(Command):
  data: str

  def __init__(self, device_id: str, action: str, data: str, module: str = "socket"):
    super().__init__(module=module, device_id=device_id, action=action)
    self.data = data


def _receive_buffer_size(sock: Optional[socket.socket]) -> int:
  if sock is None:
    return DEFAULT_RECEIVE_BUFFER_SIZE
  try:
    size = sock.getsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF)
  except OSError:
    return DEFAULT_RECEIVE_BUFFER_SIZE
  return size if size > 0 else DEFAULT_RECEIVE_BUFFER_SIZE


class Socket:
  """IO for reading/writing to a TCP socket on asyncio streams."""

  def __init__(
    self,
    host: str,
    port: int,
    connect_timeout: Optional[float] = None,
    read_timeout: float = 30,
    write_timeout: float = 30,
  ):
    self._host = host
    self._port = port
    self._reader: Optional[asyncio.StreamReader] = None
    self._writer: Optional[asyncio.StreamWriter] = None
    self._connect_timeout = connect_timeout
    self._read_timeout = read_timeout
    self._write_timeout = write_timeout
    self._unique_id = f"{self._host}:{self._port}"
    self._read_lock = asyncio.Lock()
    self._write_lock = asyncio.Lock()

  async def setup(self):
    await self._connect()

  async def _connect(self):
    self._reader, self._writer = await asyncio.wait_for(
      asyncio.open_connection(self._host, self._port), timeout=self._connect_timeout
    )
    logger.debug("Connected to socket %s", self._unique_id)

  async def stop(self):
    await self._disconnect()

  async def _disconnect(self):
    async with self._read_lock, self._write_lock:
      self._reader = None
      if self._writer is None:
        return

      logger.debug("Closing connection to socket %s", self._unique_id)

      try:
        self._writer.close()
        await self._writer.wait_closed()
      except OSError as e:
        logger.warning("Error while closing socket connection: %s", e)
      finally:
        self._writer = None

  async def __aenter__(self) -> "Socket":
    await self.setup()
    return self

  async def __aexit__(self, exc_type, exc_value, traceback):
    await self.stop()

  @property
  def receive_buffer_size(self) -> int:
    """The transport's receive-buffer capacity, in bytes."""
    sock = self._writer.get_extra_info("socket") if self._writer is not None else None
    return _receive_buffer_size(sock)

  async def write(self, data: bytes, timeout: Optional[float] = None) -> None:
    """Wrapper around StreamWriter.write with lock and io logging.
    Does not retry on errors or timeouts.
    """
    assert self._writer is not None, "forgot to call setup?"

    async with self._write_lock:
      self._writer.write(data)
      logger.log(LOG_LEVEL_IO, "[%s:%d] write %s", self._host, self._port, data)
      capturer.record(
        SocketCommand(
          device_id=self._unique_id,
          action="write",
          data=data.hex(),
        )
      )
      try:
        await asyncio.wait_for(self._writer.drain(), timeout=timeout or self._write_timeout)
      except (ConnectionResetError, OSError) as e:
        logger.error("write error: %r", e)
        raise

  async def read(self, num_bytes: int = 128, timeout: Optional[float] = None) -> bytes:
    """Wrapper around StreamReader.read with lock and io logging.

    Performs a single read of at most `num_bytes`. If `timeout` elapses first the read is
    cancelled, `asyncio.TimeoutError` is raised and anything arriving afterwards stays unread.
    Returns `b""` at end of stream.
    """
    assert self._reader is not None, "forgot to call setup?"
    async with self._read_lock:
      data = await asyncio.wait_for(
        self._reader.read(num_bytes), timeout=timeout or self._read_timeout
      )
      logger.log(LOG_LEVEL_IO, "[%s:%d] read %s", self._host, self._port, data.hex())
      capturer.record(
        SocketCommand(
          device_id=self._unique_id,
          action="read",
          data=data.hex(),
        )
      )
      return data


class BlockingSocket:
  """IO for reading/writing to a TCP socket from the calling thread.

  Reads never block on the socket itself: :meth:`read` checks whether data is available and only
  then receives, idling `poll_interval` seconds between checks until its deadline passes.
  """

  def __init__(
    self,
    host: str,
    port: int,
    connect_timeout: Optional[float] = None,
    write_timeout: float = 30,
    poll_interval: float = 0.001,
  ):
    self._host = host
    self._port = port
    self._sock: Optional[socket.socket] = None
    self._connect_timeout = connect_timeout
    self._write_timeout = write_timeout
    self._poll_interval = poll_interval
    self._unique_id = f"{self._host}:{self._port}"

  def setup(self):
    self._sock = socket.create_connection((self._host, self._port), timeout=self._connect_timeout)
    self._sock.settimeout(self._write_timeout)
    logger.debug("Connected to socket %s", self._unique_id)

  def stop(self):
    if self._sock is None:
      return

    logger.debug("Closing connection to socket %s", self._unique_id)
    try:
      self._sock.close()
    except OSError as e:
      logger.warning("Error while closing socket connection: %s", e)
    finally:
      self._sock = None

  def __enter__(self) -> "BlockingSocket":
    self.setup()
    return self

  def __exit__(self, exc_type, exc_value, traceback):
    self.stop()

  @property
  def receive_buffer_size(self) -> int:
    """The transport's receive-buffer capacity, in bytes."""
    return _receive_buffer_size(self._sock)

  def write(self, data: bytes) -> None:
    assert self._sock is not None, "forgot to call setup?"

    self._sock.sendall(data)
    logger.log(LOG_LEVEL_IO, "[%s:%d] write %s", self._host, self._port, data)
    capturer.record(
      SocketCommand(
        device_id=self._unique_id,
        action="write",
        data=data.hex(),
      )
    )

  def data_available(self) -> bool:
    """Whether a read would return immediately (data or end of stream)."""
    assert self._sock is not None, "forgot to call setup?"
    readable, _, _ = select.select([self._sock], [], [], 0)
    return len(readable) > 0

  def read(self, num_bytes: int = 128, timeout: float = 30) -> bytes:
    """Wait up to `timeout` seconds for data, then perform exactly one receive.

    Returns `b""` if nothing arrived before the deadline or the peer closed the connection.
    """
    assert self._sock is not None, "forgot to call setup?"

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
      if self.data_available():
        data = self._sock.recv(num_bytes)
        break
      time.sleep(max(0.0, min(self._poll_interval, deadline - time.monotonic())))
    else:
      return b""

    logger.log(LOG_LEVEL_IO, "[%s:%d] read %s", self._host, self._port, data.hex())
    capturer.record(
      SocketCommand(
        device_id=self._unique_id,
        action="read",
        data=data.hex(),
      )
    )
    return data
