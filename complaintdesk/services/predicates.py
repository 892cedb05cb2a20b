"""
Декларативні предикати видимості (дерево умов).

Дерево — чисті дані: його будують services.scoping / services.escalation,
а виконують бекенди сховища. Тут же є in-memory бекенд (evaluate),
SQLAlchemy-бекенд лежить у complaintdesk.db.filters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field as dc_field
from typing import Any, Iterable, Mapping, Union


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()


@dataclass(frozen=True)
class And:
    children: tuple["Predicate", ...]

    def __init__(self, *children: "Predicate"):
        object.__setattr__(self, "children", tuple(children))


@dataclass(frozen=True)
class Or:
    children: tuple["Predicate", ...]

    def __init__(self, *children: "Predicate"):
        object.__setattr__(self, "children", tuple(children))


@dataclass(frozen=True)
class Not:
    child: "Predicate"


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class Ne:
    """Не дорівнює; відсутнє поле теж вважається «не дорівнює»."""
    field: str
    value: Any


@dataclass(frozen=True)
class In:
    field: str
    values: tuple[Any, ...]

    def __init__(self, field: str, values: Iterable[Any]):
        object.__setattr__(self, "field", field)
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class NotIn:
    field: str
    values: tuple[Any, ...]

    def __init__(self, field: str, values: Iterable[Any]):
        object.__setattr__(self, "field", field)
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class Exists:
    field: str
    present: bool = True


@dataclass(frozen=True)
class IsNull:
    """Поле відсутнє або None."""
    field: str


def _end_anchor(pattern: str) -> str:
    r"""
    Кінцевий `$` у Python збігається і перед фінальним "\n"; робимо його
    кінцем рядка (`\Z`), як у SQL-бекенда. Екранований `\$` не чіпаємо.
    """
    if not pattern.endswith("$"):
        return pattern
    backslashes = len(pattern[:-1]) - len(pattern[:-1].rstrip("\\"))
    if backslashes % 2:
        return pattern
    return pattern[:-1] + r"\Z"


@dataclass(frozen=True)
class Regex:
    field: str
    pattern: str
    ignore_case: bool = False
    _compiled: re.Pattern = dc_field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        flags = re.IGNORECASE if self.ignore_case else 0
        object.__setattr__(self, "_compiled", re.compile(_end_anchor(self.pattern), flags))

    def search(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        return self._compiled.search(value) is not None


@dataclass(frozen=True)
class Lt:
    field: str
    value: Any


Predicate = Union[And, Or, Not, Eq, Ne, In, NotIn, Exists, IsNull, Regex, Lt]

# вузли з полем (листки дерева)
LEAF_TYPES = (Eq, Ne, In, NotIn, Exists, IsNull, Regex, Lt)


def get_field(record: Any, name: str) -> Any:
    """Значення поля з dict-подібного запису або з атрибута об'єкта."""
    if isinstance(record, Mapping):
        return record.get(name, MISSING)
    return getattr(record, name, MISSING)


def evaluate(predicate: Predicate, record: Any) -> bool:
    """
    Обчислює предикат для одного запису (in-memory бекенд).
    Семантика відсутніх полів як у документних сховищах:
    Eq/In/Regex/Lt не збігаються, Ne/NotIn збігаються.
    """
    p = predicate
    if isinstance(p, And):
        return all(evaluate(c, record) for c in p.children)
    if isinstance(p, Or):
        return any(evaluate(c, record) for c in p.children)
    if isinstance(p, Not):
        return not evaluate(p.child, record)
    if not isinstance(p, LEAF_TYPES):
        raise TypeError(f"Unknown predicate node: {p!r}")

    value = get_field(record, p.field)
    if isinstance(p, Eq):
        return value is not MISSING and value == p.value
    if isinstance(p, Ne):
        return value is MISSING or value != p.value
    if isinstance(p, In):
        return value is not MISSING and value in p.values
    if isinstance(p, NotIn):
        return value is MISSING or value not in p.values
    if isinstance(p, Exists):
        return (value is not MISSING) == p.present
    if isinstance(p, IsNull):
        return value is MISSING or value is None
    if isinstance(p, Regex):
        return p.search(value)
    if isinstance(p, Lt):
        if value is MISSING or value is None:
            return False
        return value < p.value
    raise TypeError(f"Unknown predicate node: {p!r}")
