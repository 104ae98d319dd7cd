"""
Cloud sync for local learner state.

Components:
- client: SyncClient, async push/pull against the hosted sync endpoints
"""
from src.sync.client import SyncClient, SyncResult

__all__ = ["SyncClient", "SyncResult"]
