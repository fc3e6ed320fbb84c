"""View Tree: ordered rendering of asynchronously completing view trees."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("view-tree")
except PackageNotFoundError:
    __version__ = "dev"
