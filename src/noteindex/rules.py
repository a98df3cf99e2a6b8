"""Smart-collection rules and their evaluation.

A rule is one of four variants, each accepting only the operators that make
sense for its field:

=============  ======================  ==========================
variant        field                   operators
=============  ======================  ==========================
TagRule        ``tag``                 ``contains`` / ``equals``
FolderRule     ``folder``              ``contains`` / ``equals``
ContentRule    ``content``             ``contains`` / ``equals``
CreatedAtRule  ``createdAt``           ``before`` / ``after``
=============  ======================  ==========================

Combinations outside this table (``before`` on a tag, say) raise
:class:`~noteindex.errors.RuleError` at construction, so an evaluator never
sees them.  A :class:`SmartCollection` ANDs its rules and is re-evaluated
against the corpus on every call; an empty rule list matches nothing.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar, Union, assert_never

from noteindex.corpus import Corpus
from noteindex.errors import RuleError
from noteindex.note import Note


class TextOperator(str, enum.Enum):
    CONTAINS = "contains"
    EQUALS = "equals"


class DateOperator(str, enum.Enum):
    BEFORE = "before"
    AFTER = "after"


def _text_operator(field_name: str, operator: TextOperator | str) -> TextOperator:
    try:
        return TextOperator(operator)
    except ValueError:
        raise RuleError(f"Operator {operator!r} is not valid for field {field_name!r}") from None


# ---------------------------------------------------------------------------
# Rule variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TagRule:
    field: ClassVar[str] = "tag"
    operator: TextOperator
    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "operator", _text_operator(self.field, self.operator))


@dataclass(frozen=True)
class FolderRule:
    field: ClassVar[str] = "folder"
    operator: TextOperator
    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "operator", _text_operator(self.field, self.operator))


@dataclass(frozen=True)
class ContentRule:
    field: ClassVar[str] = "content"
    operator: TextOperator
    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "operator", _text_operator(self.field, self.operator))


@dataclass(frozen=True)
class CreatedAtRule:
    field: ClassVar[str] = "createdAt"
    operator: DateOperator
    value: date

    def __post_init__(self) -> None:
        try:
            operator = DateOperator(self.operator)
        except ValueError:
            raise RuleError(f"Operator {self.operator!r} is not valid for field 'createdAt'") from None
        object.__setattr__(self, "operator", operator)
        object.__setattr__(self, "value", _parse_date(self.value))


CollectionRule = Union[TagRule, FolderRule, ContentRule, CreatedAtRule]

RULE_TYPES: dict[str, type] = {
    TagRule.field: TagRule,
    FolderRule.field: FolderRule,
    ContentRule.field: ContentRule,
    CreatedAtRule.field: CreatedAtRule,
}


def _parse_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        # Date-only granularity: any time part is discarded
        return datetime.fromisoformat(str(value).strip()).date()
    except ValueError:
        raise RuleError(f"Invalid date value {value!r}; expected YYYY-MM-DD") from None


def make_rule(field_name: str, operator: str, value: Any) -> CollectionRule:
    """Build the rule variant for *field_name*; raises :class:`RuleError` when invalid."""
    rule_type = RULE_TYPES.get(field_name)
    if rule_type is None:
        raise RuleError(f"Unknown rule field {field_name!r}")
    if rule_type is not CreatedAtRule:
        value = "" if value is None else str(value)
    return rule_type(operator, value)


def rule_from_dict(data: dict[str, Any]) -> CollectionRule:
    try:
        return make_rule(data["field"], data["operator"], data.get("value", ""))
    except KeyError as exc:
        raise RuleError(f"Rule is missing {exc.args[0]!r}") from None


def rule_to_dict(rule: CollectionRule) -> dict[str, str]:
    value = rule.value.isoformat() if isinstance(rule, CreatedAtRule) else rule.value
    return {"field": rule.field, "operator": rule.operator.value, "value": value}


def describe_rule(rule: CollectionRule) -> str:
    """Short human-readable summary, e.g. ``tag contains "work"``."""
    d = rule_to_dict(rule)
    return f'{d["field"]} {d["operator"]} "{d["value"]}"'


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SmartCollection:
    id: str
    name: str
    rules: tuple[CollectionRule, ...] = field(default_factory=tuple)
    created_at: datetime | None = None

    @property
    def configured(self) -> bool:
        """``False`` until at least one rule is defined."""
        return bool(self.rules)

    def describe(self) -> str:
        if not self.rules:
            return "No rules"
        if len(self.rules) == 1:
            return describe_rule(self.rules[0])
        return f"{len(self.rules)} rules"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SmartCollection":
        created = data.get("created_at") or data.get("createdAt")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            rules=tuple(rule_from_dict(r) for r in data.get("rules") or []),
            created_at=datetime.fromisoformat(created) if isinstance(created, str) else created,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "rules": [rule_to_dict(r) for r in self.rules],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _compare_text(operator: TextOperator, haystack: str, needle: str) -> bool:
    haystack, needle = haystack.casefold(), needle.casefold()
    if operator is TextOperator.CONTAINS:
        return needle in haystack
    return haystack == needle


def rule_matches(rule: CollectionRule, note: Note, corpus: Corpus) -> bool:
    match rule:
        case TagRule(operator=op, value=value):
            return any(_compare_text(op, name, value) for name in corpus.tag_names(note))
        case FolderRule(operator=op, value=value):
            return _compare_text(op, corpus.folder_path(note), value)
        case ContentRule(operator=op, value=value):
            return _compare_text(op, note.body, value)
        case CreatedAtRule(operator=op, value=value):
            created = note.created_at.date()
            return created < value if op is DateOperator.BEFORE else created > value
        case _:
            assert_never(rule)


def matches_all(rules: Iterable[CollectionRule], note: Note, corpus: Corpus) -> bool:
    rules = list(rules)
    return bool(rules) and all(rule_matches(r, note, corpus) for r in rules)


def evaluate_collection(collection: SmartCollection, corpus: Corpus) -> list[Note]:
    """Notes of *corpus* matching every rule of *collection*, in corpus order."""
    if not collection.rules:
        return []
    return [n for n in corpus.notes if all(rule_matches(r, n, corpus) for r in collection.rules)]
