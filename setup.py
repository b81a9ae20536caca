from setuptools import setup, find_packages

from pydatalogic.__version__ import __version__

with open("README.md", "r", encoding="utf-8") as f:
  long_description = f.read()


extras_testing = [
  "pytest",
  "pytest-timeout",
]

extras_dev = extras_testing + [
  "pylint",
  "mypy",
]

extras_all = extras_dev

setup(
  name="PyDatalogic",
  version=__version__,
  packages=find_packages(exclude=["examples"]),
  description="Trigger and read Datalogic barcode readers over TCP/IP",
  long_description=long_description,
  long_description_content_type="text/markdown",
  python_requires=">=3.9",
  install_requires=["typing_extensions"],
  package_data={"pydatalogic": ["version.txt"]},
  extras_require={
    "testing": extras_testing,
    "dev": extras_dev,
    "all": extras_all,
  },
)
