"""Classification of DDL statements into a closed set of variants."""

from __future__ import annotations

import re
from dataclasses import dataclass

from modelgen.splitting import normalize_identifier, parenthesized_body, split_column_list

IDENTIFIER = r"((?:\"[^\"]+\"|`[^`]+`|\[[^\]]+\]|[\w$]+)(?:\.(?:\"[^\"]+\"|`[^`]+`|\[[^\]]+\]|[\w$]+))*)"
ALTER_TABLE = rf"^ALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?{IDENTIFIER}\s+"
ALTER_TABLE_HEAD = re.compile(ALTER_TABLE, re.IGNORECASE | re.DOTALL)
ADD_ACTION = re.compile(r"^ADD\b", re.IGNORECASE)

CREATE_TABLE = re.compile(
    r"^CREATE\s+(?:(?:GLOBAL|LOCAL)\s+)?(?:TEMP\s+|TEMPORARY\s+|UNLOGGED\s+)?TABLE\s+"
    rf"(?:IF\s+NOT\s+EXISTS\s+)?{IDENTIFIER}\s*\(",
    re.IGNORECASE | re.DOTALL,
)
ALTER_COLUMN = re.compile(
    rf"{ALTER_TABLE}ALTER\s+(?:COLUMN\s+)?{IDENTIFIER}\s+(.+)$",
    re.IGNORECASE | re.DOTALL,
)
DROP_COLUMN = re.compile(
    rf"{ALTER_TABLE}DROP\s+(?!CONSTRAINT\b)(?:COLUMN\s+)?(?:IF\s+EXISTS\s+)?{IDENTIFIER}"
    r"(?:\s+(?:CASCADE|RESTRICT))?\s*$",
    re.IGNORECASE | re.DOTALL,
)
ADD_COLUMN = re.compile(
    rf"{ALTER_TABLE}(ADD\s+.+)$",
    re.IGNORECASE | re.DOTALL,
)


@dataclass(frozen=True)
class CreateTable:
    """`CREATE TABLE name (...)` with the raw text between the parentheses."""

    table: str
    columns: str


@dataclass(frozen=True)
class AlterAddColumn:
    """`ALTER TABLE name ADD ...`, the clause may hold several ADD actions."""

    table: str
    clause: str


@dataclass(frozen=True)
class AlterAlterColumn:
    """`ALTER TABLE name ALTER COLUMN column <action>`."""

    table: str
    column: str
    action: str


@dataclass(frozen=True)
class AlterDropColumn:
    """`ALTER TABLE name DROP COLUMN column`."""

    table: str
    column: str


@dataclass(frozen=True)
class Unrecognized:
    """Any statement outside the supported DDL subset."""

    text: str


type Statement = (
    CreateTable | AlterAddColumn | AlterAlterColumn | AlterDropColumn | Unrecognized
)


def split_alter_actions(statement: str) -> list[str]:
    """Expand `ALTER TABLE name a, b` into one ALTER TABLE statement per action.

    Commas nested in parentheses, as in `NUMERIC(10, 2)` or a key column
    list, do not separate actions. Any other statement is returned as is.
    """
    text = statement.strip()
    match = ALTER_TABLE_HEAD.match(text)
    if match is None:
        return [text]

    head = text[: match.end()]
    actions = split_column_list(text[match.end() :])
    return [head + action for action in actions] or [text]


def classify(statement: str) -> Statement:
    """Match a single statement against the supported DDL subset.

    An ALTER TABLE carrying several actions is only recognized when every
    action is an ADD, mixed actions are expanded with `split_alter_actions`
    first.
    """
    text = statement.strip()

    if match := ALTER_TABLE_HEAD.match(text):
        actions = split_column_list(text[match.end() :])
        if len(actions) > 1 and not all(ADD_ACTION.match(action) for action in actions):
            return Unrecognized(text)

    if match := CREATE_TABLE.match(text):
        body = parenthesized_body(text[match.end() - 1 :])
        if body is not None:
            return CreateTable(table=normalize_identifier(match[1]), columns=body)
        return Unrecognized(text)

    if match := ALTER_COLUMN.match(text):
        return AlterAlterColumn(
            table=normalize_identifier(match[1]),
            column=normalize_identifier(match[2]),
            action=" ".join(match[3].split()),
        )

    if match := DROP_COLUMN.match(text):
        return AlterDropColumn(
            table=normalize_identifier(match[1]),
            column=normalize_identifier(match[2]),
        )

    if match := ADD_COLUMN.match(text):
        return AlterAddColumn(table=normalize_identifier(match[1]), clause=match[2])

    return Unrecognized(text)
