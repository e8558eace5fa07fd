# src/linksy/domains/hosts/services/__init__.py
"""
Hosts Domain Services
"""

from .host_service import HostService, get_host_service

__all__ = ["HostService", "get_host_service"]
