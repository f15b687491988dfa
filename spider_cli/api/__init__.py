"""
Download Service Layer.

This package handles all communication with the download-management service
(qBittorrent Web API): login, session reuse and job submission.
"""

from .auth import Session, SessionManager
from .qbittorrent import QBittorrentClient

__all__ = ["QBittorrentClient", "Session", "SessionManager"]
