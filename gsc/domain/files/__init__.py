"""
Remote file domain module
"""
from .service import RemoteFileService

__all__ = ["RemoteFileService"]
