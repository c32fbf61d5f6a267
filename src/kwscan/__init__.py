"""kwscan - batch keyword scanner."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kwscan")
except PackageNotFoundError:
    __version__ = "dev"
