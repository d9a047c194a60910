"""
配件规格读取 - Part Spec Accessors

从配件的 specs 字典中安全读取数值、字符串、布尔值和列表。
Safely read numbers, strings, booleans and lists out of a part's free-form specs.

缺失或类型错误的字段一律返回默认值，不抛异常：规则因此变为"不适用"。
Missing or mistyped fields fall back to a default instead of raising, so the
rules that depend on them simply become not applicable.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional

from .schemas import Part

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)")
_TRUE = {"true", "yes", "y", "1"}
_FALSE = {"false", "no", "n", "0", "none"}


def _raw(part: Optional[Part], key: str) -> Any:
    if part is None:
        return None
    return part.specs.get(key)


def _to_number(value: Any) -> float:
    # bool 是 int 的子类，这里不当作数字
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return 0
        number = float(match.group(0))
        return int(number) if number.is_integer() else number
    return 0


def numeric_spec(part: Optional[Part], key: str, *fallback_keys: str) -> float:
    """
    读取数值规格 - Read Numeric Spec

    依次尝试 key 和 fallback_keys，返回第一个非零值；都没有则返回 0。
    Try key then fallback_keys in order and return the first non-zero value, or 0.

    数字形式的字符串会被解析（"550W" -> 550）。
    Numeric-looking strings are parsed ("550W" -> 550).
    """
    for name in (key, *fallback_keys):
        value = _to_number(_raw(part, name))
        if value:
            return value
    return 0


def string_spec(part: Optional[Part], key: str, *fallback_keys: str) -> str:
    """读取字符串规格，统一小写去空格；缺失返回空串"""
    for name in (key, *fallback_keys):
        value = _raw(part, name)
        if isinstance(value, str) and value.strip():
            return value.strip().lower()
    return ""


def bool_spec(part: Optional[Part], key: str, *fallback_keys: str) -> Optional[bool]:
    """
    读取布尔规格 - Read Boolean Spec

    返回 None 表示"未知"，调用方据此区分显式的 False 与缺失字段。
    None means unknown, so callers can tell an explicit False from a missing field.
    """
    for name in (key, *fallback_keys):
        value = _raw(part, name)
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            token = value.strip().lower()
            if token in _TRUE:
                return True
            if token in _FALSE:
                return False
    return None


def list_spec(part: Optional[Part], key: str) -> List[str]:
    value = _raw(part, key)
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip().lower() for item in value if str(item).strip()]


def format_number(value: float) -> str:
    """整数值不带小数点输出，用于拼接提示文本"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
