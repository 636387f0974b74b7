"""Patrol bot package.

Purpose: Keep a Minecraft bot online, walking a circle around its spawn point,
reconnecting forever on failure and reporting liveness over HTTP.

"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
