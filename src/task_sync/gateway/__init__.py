"""httpx clients for the remote task store and its identity service."""
