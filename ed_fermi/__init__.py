import logging
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ed_fermi")
except PackageNotFoundError:
    # Source tree usage without installed package metadata.
    __version__ = "0.0.0+local"

# Configure the root logger
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

__all__ = ["__version__"]
