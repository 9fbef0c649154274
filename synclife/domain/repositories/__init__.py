"""
Repositories - Contrato de persistencia y su implementación SQL.
"""

from synclife.domain.repositories.base import IStoreRepository, StoreSnapshot
from synclife.domain.repositories.sql_repository import SqlStoreRepository

__all__ = [
    "IStoreRepository",
    "StoreSnapshot",
    "SqlStoreRepository",
]
