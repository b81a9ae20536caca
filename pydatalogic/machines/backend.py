import inspect
from abc import ABC, abstractmethod
from typing import Optional, Type, TypeVar

T = TypeVar("T")


def find_subclass(class_name: str, cls: Type[T]) -> Optional[Type[T]]:
  """Recursively find the subclass of `cls` (or `cls` itself) named `class_name`."""

  if cls.__name__ == class_name:
    return cls
  for subclass in cls.__subclasses__():
    found = find_subclass(class_name=class_name, cls=subclass)
    if found is not None:
      return found
  return None


class MachineBackend(ABC):
  """Abstract class for device backends.

  A backend owns everything device specific: addresses, command strings and the IO used to talk
  to the device. Frontends only call `setup`, `stop` and the backend's device methods.
  """

  @abstractmethod
  async def setup(self):
    pass

  @abstractmethod
  async def stop(self):
    pass

  def serialize(self) -> dict:
    return {"type": self.__class__.__name__}

  @classmethod
  def deserialize(cls, data: dict):
    """Rebuild a backend from the output of `serialize`, looking the class up by name."""
    data = data.copy()
    class_name = data.pop("type")
    subclass = find_subclass(class_name, cls=cls)
    if subclass is None:
      raise ValueError(f'Could not find subclass with name "{class_name}"')
    if inspect.isabstract(subclass):
      raise ValueError(f'Subclass with name "{class_name}" is abstract')
    assert issubclass(subclass, cls)
    return subclass(**data)
