import datetime
import logging
from pathlib import Path
from typing import Optional, Union

from pydatalogic.__version__ import __version__
from pydatalogic.config import Config, load_config, set_active_config
from pydatalogic.io import start_capture, stop_capture
from pydatalogic.barcode_scanners import (
  BarcodeScanner,
  BarcodeScannerBackend,
  BarcodeScannerError,
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

CONFIG_FILE_NAME = "pydatalogic"

CONFIG = load_config(CONFIG_FILE_NAME, create_default=False)


def project_root() -> Path:
  """
  Get the root directory of the project.
  From https://stackoverflow.com/a/53465812
  Returns:
    The root directory of the project.
  """
  return Path(__file__).parent.parent


def setup_logger(log_dir: Optional[Union[Path, str]], level: int):
  """
  Set up the logger for pydatalogic. If the log_dir does not exist, it will be created.

  Args:
    log_dir: The directory to store the log files. If None, no log files will be created.
    level: The logging level.
  """
  if log_dir is not None:
    if isinstance(log_dir, str):
      log_dir = Path(log_dir)
    if not log_dir.exists():
      log_dir.mkdir(parents=True)
  logger = logging.getLogger("pydatalogic")
  logger.setLevel(level)

  # remove file handlers from a previous call
  for handler in list(logger.handlers):
    logger.removeHandler(handler)
    handler.close()

  if log_dir is not None:
    now = datetime.datetime.now().strftime("%Y%m%d")
    fh = logging.FileHandler(log_dir / f"pydatalogic-{now}.log")
    fh.setLevel(logging.NOTSET)  # logs everything it receives, but the logger level can filter
    fh.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(fh)


def configure(cfg: Config):
  """Configure pydatalogic: logging, and the defaults used by device sessions."""
  setup_logger(cfg.logging.log_dir, cfg.logging.level)
  set_active_config(cfg)


configure(CONFIG)
