from polar_toolkit.clients.base import BaseClient
from polar_toolkit.clients.polar import PolarClient

__all__ = ['BaseClient', 'PolarClient']
