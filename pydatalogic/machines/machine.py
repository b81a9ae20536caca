from __future__ import annotations

import functools
import sys
from typing import Awaitable, Callable, TypeVar

from pydatalogic.machines.backend import MachineBackend

if sys.version_info < (3, 10):
  from typing_extensions import Concatenate, ParamSpec
else:
  from typing import Concatenate, ParamSpec

_M = TypeVar("_M", bound="Machine")
_P = ParamSpec("_P")
_R = TypeVar("_R")


def need_setup_finished(
  func: Callable[Concatenate[_M, _P], Awaitable[_R]],
) -> Callable[Concatenate[_M, _P], Awaitable[_R]]:
  """Make a frontend coroutine method raise `RuntimeError` until `setup` has finished."""

  @functools.wraps(func)
  async def wrapper(self: _M, *args: _P.args, **kwargs: _P.kwargs) -> _R:
    if not self.setup_finished:
      raise RuntimeError(
        f"{type(self).__name__}.{func.__name__} called before setup finished. See `setup`."
      )
    return await func(self, *args, **kwargs)

  return wrapper


class Machine:
  """Frontend owning one backend. Use it as an async context manager, or call `setup` and `stop`.
  """

  def __init__(self, backend: MachineBackend):
    self.backend = backend
    self._setup_finished = False

  @property
  def setup_finished(self) -> bool:
    return self._setup_finished

  def serialize(self) -> dict:
    return {"backend": self.backend.serialize()}

  async def setup(self):
    await self.backend.setup()
    self._setup_finished = True

  @need_setup_finished
  async def stop(self):
    try:
      await self.backend.stop()
    finally:
      self._setup_finished = False

  async def __aenter__(self):
    await self.setup()
    return self

  async def __aexit__(self, exc_type, exc_value, traceback):
    await self.stop()
