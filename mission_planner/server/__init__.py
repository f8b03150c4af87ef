"""
REST API server
"""

from .api import APIServer, create_api_server

__all__ = ['APIServer', 'create_api_server']
