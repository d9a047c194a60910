"""配件目录仓库：JSON 文件或 SQLite 数据库"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Iterable, List, Protocol

from ..schemas import Part

logger = logging.getLogger(__name__)


class CatalogProtocol(Protocol):
    def all_parts(self) -> List[Part]: ...
    def by_category(self, category: str) -> List[Part]: ...
    def where(self, category: str, attribute: str, value: Any) -> List[Part]: ...
    def priced_at_most(self, category: str, ceiling: float) -> List[Part]: ...
    def find_by_id(self, part_id: str) -> Part | None: ...


def _same(left: Any, right: Any) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        return left.strip().lower() == right.strip().lower()
    return left == right


class PartsRepository:
    """
    配件仓库类 - Parts Repository Class

    从 JSON 文件加载配件目录（一个配件对象数组），并提供按类别 / 属性 / 价格的查询。
    Loads the parts catalog from a JSON file (an array of part objects) and
    answers category, attribute and price queries. Results keep catalog order.
    """

    def __init__(self, data_path: Path):
        self.data_path = Path(data_path)
        self._parts: List[Part] = []
        self.reload()

    def reload(self) -> None:
        with self.data_path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        if isinstance(raw, dict):
            raw = raw.get("parts", [])
        self._parts = [Part.model_validate(item) for item in raw]
        logger.info("Loaded %d parts from %s", len(self._parts), self.data_path)

    def all_parts(self) -> List[Part]:
        return list(self._parts)

    def by_category(self, category: str) -> List[Part]:
        return [p for p in self._parts if p.category == category]

    def where(self, category: str, attribute: str, value: Any) -> List[Part]:
        """
        按属性等值查询 - Attribute Equality Query

        字符串比较忽略大小写和首尾空格。
        String comparison ignores case and surrounding whitespace.
        """
        return [
            p
            for p in self.by_category(category)
            if attribute in p.specs and _same(p.specs[attribute], value)
        ]

    def priced_at_most(self, category: str, ceiling: float) -> List[Part]:
        return [p for p in self.by_category(category) if p.price <= ceiling]

    def find_by_id(self, part_id: str) -> Part | None:
        for part in self._parts:
            if part.id == part_id:
                return part
        return None


class SQLitePartsRepository(PartsRepository):
    """
    SQLite 配件仓库类 - SQLite Parts Repository Class

    表 parts 中 specs 以 JSON 文本存放在 specs_json 列。
    Table `parts` keeps each part's specs as JSON text in `specs_json`.
    """

    def reload(self) -> None:
        if not self.data_path.exists():
            logger.warning("Parts database %s does not exist, catalog is empty", self.data_path)
            self._parts = []
            return
        with sqlite3.connect(self.data_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                """
                SELECT id, category, brand, name, model, price, image_url, specs_json
                FROM parts
                ORDER BY rowid
                """
            ).fetchall()
        parts: List[Part] = []
        for row in rows:
            item = dict(row)
            item["specs"] = json.loads(item.pop("specs_json") or "{}")
            item["model"] = item.get("model") or ""
            parts.append(Part.model_validate(item))
        self._parts = parts
        logger.info("Loaded %d parts from %s", len(self._parts), self.data_path)


def rebuild_parts_db(db_path: Path, parts: Iterable[Part]) -> int:
    """用给定配件重建 SQLite 目录，返回写入行数"""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    rows = [
        (
            p.id,
            p.category,
            p.brand,
            p.name,
            p.model,
            p.price,
            p.image_url,
            json.dumps(p.specs, ensure_ascii=False),
        )
        for p in parts
    ]
    with sqlite3.connect(db_path) as conn:
        conn.execute("DROP TABLE IF EXISTS parts")
        conn.execute(
            """
            CREATE TABLE parts (
              id TEXT PRIMARY KEY,
              category TEXT NOT NULL,
              brand TEXT NOT NULL,
              name TEXT NOT NULL,
              model TEXT,
              price REAL NOT NULL,
              image_url TEXT,
              specs_json TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX idx_parts_category ON parts(category)")
        conn.executemany("INSERT INTO parts VALUES (?, ?, ?, ?, ?, ?, ?, ?)", rows)
        conn.commit()
    return len(rows)


def load_repository(path: Path) -> PartsRepository:
    path = Path(path)
    if path.suffix in (".db", ".sqlite", ".sqlite3"):
        return SQLitePartsRepository(path)
    return PartsRepository(path)
