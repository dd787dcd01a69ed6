"""
Remote control-plane clients.

The reconciler talks to the remote service only through the TableAPI
interface; KeyspacesClient is the shipped aiohttp implementation.
"""

from clients.base import TableAPI
from clients.keyspaces import KeyspacesClient

__all__ = ["TableAPI", "KeyspacesClient"]
