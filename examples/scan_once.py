"""Read one barcode from a Datalogic reader in both modes.

Usage: python examples/scan_once.py HOST PORT START_COMMAND [STOP_COMMAND]
"""

import asyncio
import logging
import sys

from pydatalogic import (
  DatalogicError,
  DatalogicTimeoutError,
  start_one_shot_mode,
  start_phase_mode_async,
)
from pydatalogic.io import LOG_LEVEL_IO

logging.basicConfig(level=LOG_LEVEL_IO)
logging.getLogger("pydatalogic").setLevel(LOG_LEVEL_IO)


def main():
  host, port, start_command = sys.argv[1], int(sys.argv[2]), sys.argv[3]
  stop_command = sys.argv[4] if len(sys.argv) > 4 else None

  try:
    if stop_command is None:
      print("one-shot:", start_one_shot_mode(host, port, start_command, 2000))
    else:
      print("phase:", asyncio.run(
        start_phase_mode_async(host, port, start_command, stop_command, 2000)
      ))
  except DatalogicTimeoutError:
    print("No barcode read within 2 s.")
  except DatalogicError as e:
    print(f"Reader error: {e}")
    sys.exit(1)


if __name__ == "__main__":
  main()
