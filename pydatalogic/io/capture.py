import json
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from pydatalogic.__version__ import __version__


@dataclass
class Command:
  module: str
  device_id: str
  action: str


class _CaptureWriter:
  def __init__(self):
    self._path = None
    self._tempfile = None
    # Sessions may run on several threads at once.
    self._lock = threading.Lock()

  def start(self, path: Path):
    with self._lock:
      if self._tempfile is not None:
        raise RuntimeError("io capture already active")
      self._path = path

      self._tempfile = tempfile.NamedTemporaryFile(delete=False)
      self._tempfile.write(b'{\n  "version": "')
      self._tempfile.write(__version__.encode("utf-8"))
      self._tempfile.write(b'",\n')
      self._tempfile.write(b'  "commands": [\n')
      self._tempfile.flush()

  def record(self, command: Command):
    with self._lock:
      if self._tempfile is not None:
        encoded_command = json.dumps(command.__dict__, indent=2).encode()
        # add 4 spaces to each line
        encoded_command = b"    " + encoded_command.replace(b"\n", b"\n    ")
        self._tempfile.write(encoded_command)
        self._tempfile.write(b",\n")
        self._tempfile.flush()

  def stop(self):
    with self._lock:
      if self._path is None or self._tempfile is None:
        raise RuntimeError("io capture not active. Call start() first.")

      self._tempfile.seek(self._tempfile.tell() - 2)
      # if previous line ends with a comma, delete it
      if self._tempfile.read(1) == b",":
        self._tempfile.seek(self._tempfile.tell() - 1)
        self._tempfile.write(b"\n")
        self._tempfile.write(b"  ]\n}")
      else:
        self._tempfile.seek(0, 2)
        self._tempfile.write(b"  ]\n}")
      self._tempfile.truncate()
      self._tempfile.flush()
      self._tempfile.seek(0)

      with open(self._path, "wb") as f:
        f.write(self._tempfile.read())

      temp_name = self._tempfile.name
      self._tempfile.close()
      Path(temp_name).unlink()

      print(f"Capture file written to {self._path}")

      self._path = None
      self._tempfile = None

  @property
  def capture_active(self):
    return self._tempfile is not None


capturer = _CaptureWriter()


def start_capture(fp: Union[Path, str] = Path("./capture.json")):
  """Start capturing all socket IO to a JSON file."""
  if not isinstance(fp, Path):
    fp = Path(fp)
  if fp.is_dir():
    raise ValueError("Path is a directory, please provide a file path.")
  capturer.start(fp)


def stop_capture():
  """Stop capturing socket IO and write the capture file."""
  capturer.stop()
