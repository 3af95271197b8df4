"""I/O layer - local key-value cache and remote persistence gateway."""

from .local_cache import LocalCache
from .remote_gateway import RemoteGateway

__all__ = ["LocalCache", "RemoteGateway"]
