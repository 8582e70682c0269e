"""
Testing infrastructure for pyodamex
"""

from .mock_transport import MockTransport, make_server

__all__ = ['MockTransport', 'make_server']
