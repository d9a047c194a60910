"""调用方输入错误"""

from __future__ import annotations


class InvalidCategoryError(ValueError):
    def __init__(self, category: str):
        super().__init__(f"unknown part category: {category!r}")
        self.category = category


class UnknownPartError(LookupError):
    def __init__(self, part_id: str, category: str | None = None):
        where = f" for slot {category!r}" if category else ""
        super().__init__(f"part {part_id!r} not found in catalog{where}")
        self.part_id = part_id
        self.category = category
