"""Data 模块：配件目录仓库"""

from .repository import (
    CatalogProtocol,
    PartsRepository,
    SQLitePartsRepository,
    load_repository,
    rebuild_parts_db,
)

__all__ = [
    "CatalogProtocol",
    "PartsRepository",
    "SQLitePartsRepository",
    "load_repository",
    "rebuild_parts_db",
]
