"""Single request/response exchanges with a Datalogic reader over TCP.

Every operation opens its own connection, writes a trigger command, waits for exactly one read
and closes the connection again, whatever the outcome. Two modes are supported:

- phase mode: a start command opens the reading phase and a stop command closes it after the
  read. The stop command is also sent when the read times out, so the reader does not keep
  scanning.
- one-shot mode: a single command triggers a single reading.

Each mode has a blocking form, which polls the socket on the calling thread, and an `async`
form, which races the read against the timeout on the event loop.

The command strings are sent as configured on the reader (including any STX/ETX or CR/LF
framing); they are not validated here.

Example:
  >>> start_one_shot_mode("192.168.3.100", 51236, "TRIGGER\\r\\n", timeout_ms=2000)
  'OK:123456'
"""

import asyncio
import logging
from typing import Optional

from pydatalogic.barcode_scanners.datalogic.errors import (
  DatalogicConnectionError,
  DatalogicTimeoutError,
  DatalogicTransportError,
)
from pydatalogic.config import get_active_config
from pydatalogic.io.socket import BlockingSocket, Socket

logger = logging.getLogger(__name__)

# One byte per character on the wire; bytes outside ASCII read as "?".
ENCODING = "ascii"
_TO_ASCII = bytes(b if b < 0x80 else ord("?") for b in range(256))


def _encode(command: str) -> bytes:
  return command.encode(ENCODING, errors="replace")


def _decode(data: bytes) -> str:
  return data.translate(_TO_ASCII).decode(ENCODING)


def _check_timeout(timeout_ms: int):
  if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int) or timeout_ms <= 0:
    raise ValueError(f"timeout_ms must be a positive integer, got {timeout_ms!r}")


def _timeout_error(host: str, port: int, timeout_ms: int) -> DatalogicTimeoutError:
  return DatalogicTimeoutError(f"No response from {host}:{port} within {timeout_ms} ms.")


def _exchange(
  host: str,
  port: int,
  command: str,
  stop_command: Optional[str],
  timeout_ms: int,
  connect_timeout: Optional[float],
  poll_interval: Optional[float],
) -> str:
  _check_timeout(timeout_ms)
  session_config = get_active_config().session
  io = BlockingSocket(
    host=host,
    port=port,
    connect_timeout=connect_timeout if connect_timeout is not None
    else session_config.connect_timeout,
    poll_interval=poll_interval if poll_interval is not None else session_config.poll_interval,
  )

  try:
    io.setup()
  except OSError as e:
    raise DatalogicConnectionError(f"Could not connect to {host}:{port}: {e}") from e

  try:
    try:
      io.write(_encode(command))
      data = io.read(io.receive_buffer_size, timeout=timeout_ms / 1000)
    except OSError as e:
      raise DatalogicTransportError(f"TCP socket error on {host}:{port}: {e}") from e

    if len(data) == 0:
      logger.info("No response from %s:%s within %d ms", host, port, timeout_ms)
      if stop_command is not None:
        try:
          io.write(_encode(stop_command))
        except OSError as e:
          logger.warning("Could not send stop command to %s:%s after timeout: %s", host, port, e)
      raise _timeout_error(host, port, timeout_ms)

    response = _decode(data)

    if stop_command is not None:
      try:
        io.write(_encode(stop_command))
      except OSError as e:
        raise DatalogicTransportError(f"TCP socket error on {host}:{port}: {e}") from e

    return response
  finally:
    io.stop()


async def _exchange_async(
  host: str,
  port: int,
  command: str,
  stop_command: Optional[str],
  timeout_ms: int,
  connect_timeout: Optional[float],
) -> str:
  _check_timeout(timeout_ms)
  session_config = get_active_config().session
  io = Socket(
    host=host,
    port=port,
    connect_timeout=connect_timeout if connect_timeout is not None
    else session_config.connect_timeout,
  )

  try:
    await io.setup()
  except (OSError, asyncio.TimeoutError) as e:
    raise DatalogicConnectionError(f"Could not connect to {host}:{port}: {e!r}") from e

  try:
    try:
      await io.write(_encode(command))
    except (OSError, asyncio.TimeoutError) as e:
      raise DatalogicTransportError(f"TCP socket error on {host}:{port}: {e!r}") from e

    try:
      data = await io.read(io.receive_buffer_size, timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
      data = b""
    except OSError as e:
      raise DatalogicTransportError(f"TCP socket error on {host}:{port}: {e}") from e

    if len(data) == 0:
      logger.info("No response from %s:%s within %d ms", host, port, timeout_ms)
      if stop_command is not None:
        try:
          await io.write(_encode(stop_command))
        except (OSError, asyncio.TimeoutError) as e:
          logger.warning("Could not send stop command to %s:%s after timeout: %r", host, port, e)
      raise _timeout_error(host, port, timeout_ms)

    response = _decode(data)

    if stop_command is not None:
      try:
        await io.write(_encode(stop_command))
      except (OSError, asyncio.TimeoutError) as e:
        raise DatalogicTransportError(f"TCP socket error on {host}:{port}: {e!r}") from e

    return response
  finally:
    await io.stop()


def start_phase_mode(
  host: str,
  port: int,
  start_command: str,
  stop_command: str,
  timeout_ms: int,
  *,
  connect_timeout: Optional[float] = None,
  poll_interval: Optional[float] = None,
) -> str:
  """Run one reading phase and return the response. Blocks the calling thread.

  Args:
    host: IP address or host name of the reader.
    port: TCP port of the reader's host channel.
    start_command: string that makes the reader start reading.
    stop_command: string that makes the reader stop reading. Sent after the read, and also when
      the read times out.
    timeout_ms: how long to wait for a response, in milliseconds.
    connect_timeout: seconds to wait for the connection. Defaults to the configured value.
    poll_interval: seconds to idle between checks for incoming data. Defaults to the configured
      value.

  Returns:
    The text of the single read, decoded as ASCII.

  Raises:
    DatalogicConnectionError: the connection could not be established.
    DatalogicTimeoutError: nothing was received within `timeout_ms`.
    DatalogicTransportError: writing or reading failed on the established connection.
  """

  return _exchange(
    host, port, start_command, stop_command, timeout_ms,
    connect_timeout=connect_timeout, poll_interval=poll_interval,
  )


async def start_phase_mode_async(
  host: str,
  port: int,
  start_command: str,
  stop_command: str,
  timeout_ms: int,
  *,
  connect_timeout: Optional[float] = None,
) -> str:
  """Run one reading phase and return the response, without blocking the event loop.

  See :func:`start_phase_mode` for the arguments and errors. If the timeout wins the race against
  the read, the read is cancelled and whatever it would have returned is discarded.
  """

  return await _exchange_async(
    host, port, start_command, stop_command, timeout_ms, connect_timeout=connect_timeout,
  )


def start_one_shot_mode(
  host: str,
  port: int,
  command: str,
  timeout_ms: int,
  *,
  connect_timeout: Optional[float] = None,
  poll_interval: Optional[float] = None,
) -> str:
  """Trigger a single reading and return the response. Blocks the calling thread.

  Args:
    host: IP address or host name of the reader.
    port: TCP port of the reader's host channel.
    command: string that triggers the reading.
    timeout_ms: how long to wait for a response, in milliseconds.
    connect_timeout: seconds to wait for the connection. Defaults to the configured value.
    poll_interval: seconds to idle between checks for incoming data. Defaults to the configured
      value.

  Returns:
    The text of the single read, decoded as ASCII.

  Raises:
    DatalogicConnectionError: the connection could not be established.
    DatalogicTimeoutError: nothing was received within `timeout_ms`.
    DatalogicTransportError: writing or reading failed on the established connection.
  """

  return _exchange(
    host, port, command, None, timeout_ms,
    connect_timeout=connect_timeout, poll_interval=poll_interval,
  )


async def start_one_shot_mode_async(
  host: str,
  port: int,
  command: str,
  timeout_ms: int,
  *,
  connect_timeout: Optional[float] = None,
) -> str:
  """Trigger a single reading and return the response, without blocking the event loop.

  See :func:`start_one_shot_mode` for the arguments and errors.
  """

  return await _exchange_async(
    host, port, command, None, timeout_ms, connect_timeout=connect_timeout,
  )
