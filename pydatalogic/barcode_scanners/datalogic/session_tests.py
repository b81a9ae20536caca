import asyncio
import time
import unittest
from unittest.mock import patch

from pydatalogic.barcode_scanners.backend import BarcodeScannerError
from pydatalogic.barcode_scanners.datalogic.errors import (
  DatalogicConnectionError,
  DatalogicTimeoutError,
  DatalogicTransportError,
)
from pydatalogic.barcode_scanners.datalogic.mock_tests import MockDatalogicDevice, unused_port
from pydatalogic.barcode_scanners.datalogic.session import (
  start_one_shot_mode,
  start_one_shot_mode_async,
  start_phase_mode,
  start_phase_mode_async,
)
from pydatalogic.io.socket import BlockingSocket, Socket


class BlockingSessionTests(unittest.TestCase):
  """Tests for the blocking operations against a mock reader."""

  def setUp(self):
    self.device = MockDatalogicDevice()
    self.device.start()
    self.addCleanup(self.device.close)

  def test_one_shot_round_trip(self):
    response = start_one_shot_mode(self.device.host, self.device.port, "START", 2000)
    self.assertEqual(response, "OK:123456")
    self.assertEqual(self.device.received, b"START")
    self.assertEqual(self.device.connections, 1)

  def test_phase_round_trip_sends_stop(self):
    self.device.response = b"SCAN1"
    response = start_phase_mode(self.device.host, self.device.port, "START", "STOP", 2000)
    self.assertEqual(response, "SCAN1")
    self.assertTrue(self.device.wait_for(b"STOP"))
    self.assertEqual(self.device.received, b"STARTSTOP")

  def test_one_shot_timeout(self):
    self.device.response = None
    t0 = time.monotonic()
    with self.assertRaises(DatalogicTimeoutError):
      start_one_shot_mode(self.device.host, self.device.port, "START", 300)
    elapsed = time.monotonic() - t0
    self.assertGreaterEqual(elapsed, 0.29)
    self.assertLess(elapsed, 1.5)
    time.sleep(0.1)
    self.assertEqual(self.device.received, b"START")

  def test_phase_timeout_sends_stop(self):
    self.device.response = None
    with self.assertRaises(DatalogicTimeoutError):
      start_phase_mode(self.device.host, self.device.port, "START", "STOP", 300)
    self.assertTrue(self.device.wait_for(b"STOP"))

  def test_phase_timeout_wins_over_failed_stop(self):
    self.device.response = None
    with patch.object(BlockingSocket, "write", side_effect=[None, BrokenPipeError()]) as write:
      with self.assertRaises(DatalogicTimeoutError):
        start_phase_mode(self.device.host, self.device.port, "START", "STOP", 100)
    self.assertEqual(write.call_count, 2)

  def test_partial_read_is_not_padded(self):
    self.device.response = b"ABCDE"
    response = start_one_shot_mode(self.device.host, self.device.port, "START", 2000)
    self.assertEqual(response, "ABCDE")
    self.assertEqual(len(response), 5)

  def test_non_ascii_bytes_are_replaced(self):
    self.device.response = b"A\xffB"
    response = start_one_shot_mode(self.device.host, self.device.port, "START", 2000)
    self.assertEqual(response, "A?B")

  def test_closed_without_response_is_timeout(self):
    self.device.close_without_response = True
    t0 = time.monotonic()
    with self.assertRaises(DatalogicTimeoutError):
      start_one_shot_mode(self.device.host, self.device.port, "START", 2000)
    self.assertLess(time.monotonic() - t0, 1.5)

  def test_write_failure_is_transport_error(self):
    with patch.object(BlockingSocket, "write", side_effect=ConnectionResetError()):
      with self.assertRaises(DatalogicTransportError) as ctx:
        start_one_shot_mode(self.device.host, self.device.port, "START", 2000)
    self.assertIsInstance(ctx.exception.__cause__, ConnectionResetError)

  def test_invalid_timeout(self):
    for timeout in (0, -5, 1.5, True, "100"):
      with self.assertRaises(ValueError):
        start_one_shot_mode(self.device.host, self.device.port, "START", timeout)  # type: ignore
    self.assertEqual(self.device.connections, 0)


class BlockingConnectFailureTests(unittest.TestCase):
  def test_connect_failure(self):
    port = unused_port()
    with self.assertRaises(DatalogicConnectionError) as ctx:
      start_one_shot_mode("127.0.0.1", port, "START", 300)
    self.assertNotIsInstance(ctx.exception, DatalogicTimeoutError)
    self.assertIsInstance(ctx.exception.__cause__, OSError)

    with self.assertRaises(DatalogicConnectionError):
      start_phase_mode("127.0.0.1", port, "START", "STOP", 300)

  def test_errors_share_a_base(self):
    with self.assertRaises(BarcodeScannerError):
      start_one_shot_mode("127.0.0.1", unused_port(), "START", 300)
    with self.assertRaises(ConnectionError):
      start_one_shot_mode("127.0.0.1", unused_port(), "START", 300)


class AsyncSessionTests(unittest.IsolatedAsyncioTestCase):
  """Tests for the async operations against a mock reader."""

  async def asyncSetUp(self):
    self.device = MockDatalogicDevice()
    self.device.start()
    self.addCleanup(self.device.close)

  async def test_one_shot_round_trip(self):
    response = await start_one_shot_mode_async(self.device.host, self.device.port, "START", 2000)
    self.assertEqual(response, "OK:123456")
    self.assertEqual(self.device.received, b"START")

  async def test_phase_round_trip_sends_stop(self):
    self.device.response = b"SCAN1"
    response = await start_phase_mode_async(
      self.device.host, self.device.port, "START", "STOP", 2000
    )
    self.assertEqual(response, "SCAN1")
    self.assertTrue(await asyncio.to_thread(self.device.wait_for, b"STOP"))
    self.assertEqual(self.device.received, b"STARTSTOP")

  async def test_one_shot_timeout(self):
    self.device.response = None
    t0 = time.monotonic()
    with self.assertRaises(DatalogicTimeoutError):
      await start_one_shot_mode_async(self.device.host, self.device.port, "START", 300)
    elapsed = time.monotonic() - t0
    self.assertGreaterEqual(elapsed, 0.29)
    self.assertLess(elapsed, 1.5)
    await asyncio.sleep(0.1)
    self.assertEqual(self.device.received, b"START")

  async def test_phase_timeout_sends_stop(self):
    self.device.response = None
    with self.assertRaises(DatalogicTimeoutError):
      await start_phase_mode_async(self.device.host, self.device.port, "START", "STOP", 300)
    self.assertTrue(await asyncio.to_thread(self.device.wait_for, b"STOP"))

  async def test_timeout_does_not_block_event_loop(self):
    self.device.response = None
    ticks = 0

    async def ticker():
      nonlocal ticks
      while True:
        await asyncio.sleep(0.01)
        ticks += 1

    task = asyncio.create_task(ticker())
    try:
      with self.assertRaises(DatalogicTimeoutError):
        await start_one_shot_mode_async(self.device.host, self.device.port, "START", 300)
    finally:
      task.cancel()
    self.assertGreater(ticks, 5)

  async def test_partial_read_is_not_padded(self):
    self.device.response = b"ABCDE"
    response = await start_one_shot_mode_async(self.device.host, self.device.port, "START", 2000)
    self.assertEqual(response, "ABCDE")

  async def test_non_ascii_bytes_are_replaced(self):
    self.device.response = b"A\xe9B"
    response = await start_one_shot_mode_async(self.device.host, self.device.port, "START", 2000)
    self.assertEqual(response, "A?B")

  async def test_closed_without_response_is_timeout(self):
    self.device.close_without_response = True
    with self.assertRaises(DatalogicTimeoutError):
      await start_phase_mode_async(self.device.host, self.device.port, "START", "STOP", 2000)

  async def test_read_failure_is_transport_error(self):
    with patch.object(Socket, "read", side_effect=ConnectionResetError()):
      with self.assertRaises(DatalogicTransportError) as ctx:
        await start_one_shot_mode_async(self.device.host, self.device.port, "START", 2000)
    self.assertIsInstance(ctx.exception.__cause__, ConnectionResetError)

  async def test_concurrent_calls_use_own_connections(self):
    responses = await asyncio.gather(
      *(start_one_shot_mode_async(self.device.host, self.device.port, "START", 2000)
        for _ in range(3))
    )
    self.assertEqual(responses, ["OK:123456"] * 3)
    self.assertEqual(self.device.connections, 3)

  async def test_connect_failure(self):
    port = unused_port()
    with self.assertRaises(DatalogicConnectionError) as ctx:
      await start_one_shot_mode_async("127.0.0.1", port, "START", 300)
    self.assertNotIsInstance(ctx.exception, DatalogicTimeoutError)
    self.assertIsInstance(ctx.exception.__cause__, OSError)

    with self.assertRaises(DatalogicConnectionError):
      await start_phase_mode_async("127.0.0.1", port, "START", "STOP", 300)

  async def test_invalid_timeout(self):
    with self.assertRaises(ValueError):
      await start_phase_mode_async(self.device.host, self.device.port, "START", "STOP", 0)
    self.assertEqual(self.device.connections, 0)


class EquivalenceTests(unittest.IsolatedAsyncioTestCase):
  """The blocking and async forms of a mode agree on the outcome."""

  async def _scan_result(self, coro_or_callable):
    try:
      if asyncio.iscoroutine(coro_or_callable):
        return await coro_or_callable
      return await asyncio.to_thread(coro_or_callable)
    except DatalogicTimeoutError:
      return "timeout"

  async def test_equivalence(self):
    for response in (b"OK:123456", b"SCAN1", None):
      with MockDatalogicDevice(response=response) as device:
        host, port = device.host, device.port
        blocking_one_shot = await self._scan_result(
          lambda: start_one_shot_mode(host, port, "START", 300)
        )
        async_one_shot = await self._scan_result(
          start_one_shot_mode_async(host, port, "START", 300)
        )
        blocking_phase = await self._scan_result(
          lambda: start_phase_mode(host, port, "START", "STOP", 300)
        )
        async_phase = await self._scan_result(
          start_phase_mode_async(host, port, "START", "STOP", 300)
        )

      expected = response.decode() if response is not None else "timeout"
      self.assertEqual(blocking_one_shot, expected)
      self.assertEqual(async_one_shot, expected)
      self.assertEqual(blocking_phase, expected)
      self.assertEqual(async_phase, expected)
