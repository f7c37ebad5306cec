from tcmonitor.clients.base import CloudAPIClient, PreparedRequest

__all__ = ["CloudAPIClient", "PreparedRequest"]
