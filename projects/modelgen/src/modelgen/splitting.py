"""Lexical helpers turning DDL text into statements and column fragments."""

import re

CONSTRAINT_PREFIX = re.compile(
    r"^(CONSTRAINT\b|PRIMARY\s+KEY\b|FOREIGN\s+KEY\b|UNIQUE\b|CHECK\b)",
    re.IGNORECASE,
)
PRIMARY_KEY_LIST = re.compile(r"\bPRIMARY\s+KEY\s*\(([^)]*)\)", re.IGNORECASE)

# Keywords ending the type part of a column definition
COLUMN_MODIFIERS = frozenset(
    {
        "NOT",
        "NULL",
        "PRIMARY",
        "DEFAULT",
        "REFERENCES",
        "UNIQUE",
        "CHECK",
        "CONSTRAINT",
        "COLLATE",
        "GENERATED",
    },
)

QUOTES = (('"', '"'), ("`", "`"), ("[", "]"))


def split_statements(text: str) -> list[str]:
    """Split DDL source into trimmed statements, dropping comments.

    Handles `--` line comments and `/* */` block comments spanning lines.
    Semicolons nested in parentheses do not end a statement. String literals
    are not tracked, so a `;` or comment marker inside quotes is not special.
    """
    statements: list[str] = []
    buffer: list[str] = []
    in_block_comment = False
    depth = 0

    def close() -> None:
        statement = "".join(buffer).strip()
        if statement:
            statements.append(statement)
        buffer.clear()

    for line in text.splitlines():
        idx = 0
        while idx < len(line):
            pair = line[idx : idx + 2]
            if in_block_comment:
                if pair == "*/":
                    in_block_comment = False
                    idx += 2
                else:
                    idx += 1
                continue
            if pair == "--":
                break
            if pair == "/*":
                in_block_comment = True
                idx += 2
                continue

            ch = line[idx]
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth = max(0, depth - 1)

            if ch == ";" and depth == 0:
                close()
            else:
                buffer.append(ch)
            idx += 1
        buffer.append("\n")

    close()
    return statements


def split_column_list(body: str) -> list[str]:
    """Split a column clause on commas outside of parentheses."""
    fragments: list[str] = []
    buffer: list[str] = []
    depth = 0
    for ch in body:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == "," and depth == 0:
            fragments.append("".join(buffer))
            buffer.clear()
            continue
        buffer.append(ch)
    fragments.append("".join(buffer))

    return [" ".join(fragment.split()) for fragment in fragments if fragment.strip()]


def parenthesized_body(text: str) -> str | None:
    """Return the text inside the first balanced pair of parentheses."""
    start = text.find("(")
    if start < 0:
        return None

    depth = 0
    for idx in range(start, len(text)):
        if text[idx] == "(":
            depth += 1
        elif text[idx] == ")":
            depth -= 1
            if depth == 0:
                return text[start + 1 : idx]
    return None


def normalize_identifier(identifier: str) -> str:
    """Strip schema qualification and quoting from an identifier.

    Examples:
        public.users -> users
        "public"."Users" -> Users
        `orders` -> orders

    """
    name = identifier.strip().rsplit(".", 1)[-1].strip()
    for opening, closing in QUOTES:
        if len(name) >= 2 and name.startswith(opening) and name.endswith(closing):  # noqa: PLR2004
            return name[1:-1]
    return name


def is_constraint(fragment: str) -> bool:
    """Check whether a fragment is a table-level constraint."""
    return CONSTRAINT_PREFIX.match(fragment.strip()) is not None


def primary_key_columns(fragment: str) -> list[str]:
    """Return the column names of a `PRIMARY KEY (...)` constraint."""
    if not is_constraint(fragment):
        return []
    if match := PRIMARY_KEY_LIST.search(fragment):
        return [normalize_identifier(name) for name in match[1].split(",") if name.strip()]
    return []


def split_type_suffix(rest: str) -> tuple[str, str]:
    """Split the remainder of a column definition into its type and modifiers."""
    words: list[str] = []
    depth = 0
    start = 0
    for idx, ch in enumerate(rest + " "):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch.isspace() and depth == 0:
            word = rest[start:idx].strip()
            start = idx + 1
            if not word:
                continue
            if word.upper() in COLUMN_MODIFIERS:
                return " ".join(words), rest[idx - len(word) :].strip()
            words.append(word)
    return " ".join(words), ""


def parse_column_definition(fragment: str) -> tuple[str, str, bool, bool]:
    """Parse `name TYPE [modifiers]` into name, type, nullability and primary key."""
    parts = fragment.strip().split(None, 1)
    name = normalize_identifier(parts[0])
    sql_type, modifiers = split_type_suffix(parts[1] if len(parts) > 1 else "")

    words = modifiers.upper().split()
    pairs = set(zip(words, words[1:], strict=False))
    primary_key = ("PRIMARY", "KEY") in pairs
    nullable = ("NOT", "NULL") not in pairs and not primary_key

    return name, sql_type, nullable, primary_key
