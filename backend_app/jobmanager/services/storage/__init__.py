"""
Data access layer

- collections: collection names, local storage keys and Cosmos document types
- cosmos_backend / rest_backend / local_backend: the three places data can live
- gateway: ordered fallback across them
"""

from .collections import COLLECTIONS, CollectionSpec, get_collection
from .cosmos_backend import CosmosBackend
from .gateway import DataGateway, build_data_gateway
from .local_backend import LocalJsonBackend
from .rest_backend import RestApiBackend

__all__ = [
    "COLLECTIONS",
    "CollectionSpec",
    "CosmosBackend",
    "DataGateway",
    "LocalJsonBackend",
    "RestApiBackend",
    "build_data_gateway",
    "get_collection",
]
