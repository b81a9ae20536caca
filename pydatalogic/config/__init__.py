"""

Config module. Facilitates reading and writing module-level config files.
Checks the current directory and all parent directories for a `pydatalogic.ini`
or `pydatalogic.json` config file. If no config file exists, a default Config
object is used. When asked to, a default config file is written to the project
directory containing the .git directory, or to the current directory if there is
none.
"""
import configparser
import io
import json
from pathlib import Path
from typing import Optional, Union

from pydatalogic.config.config import Config

# Searched in this order. New config files are written in the first format.
EXTENSIONS = ("ini", "json")

ENCODING = "utf-8"


def _parse_ini(text: str) -> dict:
  parser = configparser.ConfigParser()
  parser.read_string(text)
  if not parser.has_section("logging") and not parser.has_section("session"):
    raise ValueError("INI file has neither a [logging] nor a [session] section.")
  return {section: dict(parser[section]) for section in parser.sections()}


def _format_ini(data: dict) -> str:
  parser = configparser.ConfigParser()
  for section, values in data.items():
    parser[section] = {k: str(v) for k, v in values.items() if v is not None}
  out = io.StringIO()
  parser.write(out)
  return out.getvalue()


def _parse_json(text: str) -> dict:
  data = json.loads(text)
  if not isinstance(data, dict):
    raise ValueError("JSON config must be an object.")
  return data


def _format_json(data: dict) -> str:
  return json.dumps(data, indent=2)


_PARSERS = {"ini": _parse_ini, "json": _parse_json}
_FORMATTERS = {"ini": _format_ini, "json": _format_json}


def _extension(path: Path) -> str:
  ext = path.suffix.lstrip(".").lower()
  if ext not in EXTENSIONS:
    raise ValueError(f"Unsupported config file type: {path}")
  return ext


def read_config(path: Union[str, Path]) -> Config:
  """Read a Config from an INI or JSON file, picking the format by the file suffix.

  Raises:
    ValueError: the suffix is not one of `EXTENSIONS`, or the file is not a valid config.
  """
  path = Path(path)
  parse = _PARSERS[_extension(path)]
  try:
    data = parse(path.read_text(encoding=ENCODING))
  except (configparser.Error, json.JSONDecodeError) as e:
    raise ValueError(f"Could not load config file {path}: {e}") from e
  return Config.from_dict(data)


def write_config(path: Union[str, Path], cfg: Config):
  """Write `cfg` to an INI or JSON file, picking the format by the file suffix."""
  path = Path(path)
  path.write_text(_FORMATTERS[_extension(path)](cfg.as_dict), encoding=ENCODING)


def get_file(base_name: str, _dir: Path) -> Optional[Path]:
  for ext in EXTENSIONS:
    cfg = _dir / f"{base_name}.{ext}"
    if cfg.exists():
      return cfg
  return None


def get_config_file(
  base_name: str,
  cur_dir: Optional[Union[str, Path]] = None
) -> Optional[Path]:
  """Get the path to the config file.

  Args:
    base_name: The base name of the config file.
    cur_dir: The directory to start searching in. Defaults to the current working directory.

  Returns:
    The path to the config file, or None if neither `cur_dir` nor any of its parents has one.
  """
  cdir = Path(cur_dir) if cur_dir is not None else Path.cwd()

  cfg = get_file(base_name, cdir)
  if cfg is not None:
    return cfg

  if cdir.parent == cdir:
    return None

  return get_config_file(base_name, cdir.parent)


def get_dir_to_create_config_file_in() -> Path:
  """Crawls parent directories and looks for a .git directory to determine the
  root of the project. If no .git directory is found, the current directory is
  returned."""
  cur_dir = Path.cwd()
  for parent in (cur_dir, *cur_dir.parents):
    if (parent / ".git").exists():
      return parent
  return cur_dir


def load_config(base_file_name: str, create_default: bool = False,
                create_module_level: bool = True) -> Config:
  """Load a Config object from a file.

  Args:
    base_file_name: The base file name to load.
    create_default: Whether to create a default Config file if the file does
    not exist. It is written in the first format of EXTENSIONS.
    create_module_level: Whether to create the default file at the project root
    instead of the current directory.
  """
  config_path = get_config_file(base_file_name)
  if config_path is None:
    if not create_default:
      return Config()
    create_dir = get_dir_to_create_config_file_in() if create_module_level else Path.cwd()
    config_path = create_dir / f"{base_file_name}.{EXTENSIONS[0]}"
    write_config(config_path, Config())

  return read_config(config_path)


_active_config = Config()


def get_active_config() -> Config:
  """Get the Config most recently passed to `set_active_config` (normally by `configure`)."""
  return _active_config


def set_active_config(cfg: Config):
  global _active_config
  _active_config = cfg
