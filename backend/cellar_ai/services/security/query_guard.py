"""Structural validation of LLM-generated SQL before it reaches the database.

Generated text is never trusted to be read-only or owner-scoped by convention.
A :class:`ReadOnlyQuery` can only be obtained through :class:`ReadOnlyQueryValidator`,
so holding one means the checks below have passed.

Owner isolation does not depend on where the model puts its filter: ``build``
replaces every ``"Wine"`` table reference with a derived table that only
contains the owner's rows, so boolean tricks in the outer WHERE clause
(``NOT``, ``OR TRUE``, operator precedence) can only narrow that set.
"""

import re
from dataclasses import dataclass, field

from .exceptions import QueryValidationError

OWNER_PARAM = "owner_id"

WINE_TABLE = "Wine"

OWNER_SCOPED_WINE = f'(SELECT * FROM "{WINE_TABLE}" WHERE "userId" = :{OWNER_PARAM})'


@dataclass
class ValidationResult:
    """Result of query validation."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    violations: list[dict] = field(default_factory=list)

    def add_error(self, message: str, violation_type: str = None, fragment: str = None):
        """Add a validation error."""
        self.is_valid = False
        self.errors.append(message)
        violation = {"type": violation_type or "unknown", "message": message}
        if fragment:
            violation["fragment"] = fragment
        self.violations.append(violation)

    def add_warning(self, message: str):
        """Add a validation warning."""
        self.warnings.append(message)


@dataclass(frozen=True)
class ReadOnlyQuery:
    """SQL text that passed read-only validation and was rewritten to one owner's rows."""

    text: str
    original_text: str
    row_limit: int | None = None

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class TableReference:
    """A name in table position (after FROM, JOIN or a comma in a FROM list)."""

    start: int
    end: int
    parts: tuple[str, ...]
    has_alias: bool

    @property
    def name(self) -> str:
        return self.parts[-1].strip('"')

    @property
    def schema(self) -> str | None:
        return self.parts[0].strip('"') if len(self.parts) > 1 else None

    @property
    def is_wine(self) -> bool:
        return self.name.lower() == WINE_TABLE.lower()


def strip_sql_comments(sql: str) -> str:
    """Remove ``--`` and ``/* */`` comments."""
    sql = re.sub(r"/\*.*?\*/", " ", sql, flags=re.DOTALL)
    return re.sub(r"--[^\n]*", " ", sql)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences an LLM may wrap around SQL."""
    text = text.strip()
    fenced = re.search(r"```(?:sql|postgresql|postgres)?\s*(.*?)```", text, flags=re.DOTALL | re.IGNORECASE)
    if fenced:
        return fenced.group(1).strip()
    return text.strip("`").strip()


LEXICAL_TOKEN = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"")


def _mask(match: re.Match) -> str:
    token = match.group()
    # Plain quoted names ("userId", "Wine") stay visible; anything else is blanked
    if token.startswith('"') and re.fullmatch(r'"\w+"', token):
        return token
    return token[0] + " " * (len(token) - 2) + token[-1]


def mask_sql(sql: str) -> str:
    """Blank out string literals and non-trivial quoted identifiers, keeping offsets.

    Literals and quoted identifiers are lexed in one left-to-right pass, the way the
    database reads them, so a quote inside one can never hide SQL from the checks.
    """
    return LEXICAL_TOKEN.sub(_mask, sql)


class ReadOnlyQueryValidator:
    """Validates generated SQL and wraps it in :class:`ReadOnlyQuery`."""

    FORBIDDEN_KEYWORDS = {
        "insert", "update", "delete", "merge", "upsert", "drop", "alter", "truncate",
        "create", "grant", "revoke", "comment", "copy", "call", "execute", "exec",
        "prepare", "deallocate", "vacuum", "analyze", "reindex", "cluster", "lock",
        "attach", "detach", "pragma", "listen", "notify", "refresh", "into", "set",
        "reset", "begin", "commit", "rollback", "savepoint", "do", "recursive",
    }

    FORBIDDEN_FUNCTIONS = {
        "pg_sleep", "pg_read_file", "pg_read_binary_file", "pg_ls_dir", "pg_stat_file",
        "pg_terminate_backend", "pg_cancel_backend", "pg_reload_conf", "lo_import",
        "lo_export", "dblink", "dblink_exec", "set_config", "current_setting",
        "load_extension", "randomblob", "zeroblob",
    }

    ALLOWED_SCHEMAS = {"public", "main"}

    # FROM inside these calls introduces an expression, not a table
    EXPRESSION_FROM_FUNCTIONS = {"extract", "trim", "substring", "overlay", "position"}

    FROM_LIST_END = {
        "select", "where", "group", "having", "order", "limit", "offset", "fetch",
        "window", "union", "intersect", "except", "values",
    }

    NOT_AN_ALIAS = {
        "where", "join", "inner", "left", "right", "full", "outer", "cross", "natural",
        "on", "using", "group", "order", "having", "limit", "offset", "fetch", "window",
        "union", "intersect", "except", "tablesample",
    }

    SQL_TOKEN = re.compile(r'"[^"]*"|[A-Za-z_]\w*|\S')

    OWNER_PREDICATE = re.compile(
        r'(?:\b\w+\.)?"?userId"?\s*=\s*:' + OWNER_PARAM + r"\b"
    )
    USER_ID_REFERENCE = re.compile(r'"?\buserId\b"?')
    CTE_NAME = re.compile(r'(?:\bwith|,)\s*"?(\w+)"?\s*(?:\([^)]*\)\s*)?as\s*\(', re.IGNORECASE)
    BIND_PARAM = re.compile(r"(?<![:\w]):(\w+)")

    def __init__(self, row_limit: int = 500):
        self.row_limit = row_limit

    def validate(self, sql: str) -> ValidationResult:
        """Check ``sql`` without raising; returns every problem found."""
        result = ValidationResult(is_valid=True)
        cleaned = self._normalize(sql)

        if not cleaned:
            result.add_error("Query is empty", "empty_query")
            return result

        scan = mask_sql(cleaned)

        if ";" in scan:
            result.add_error("Only a single SQL statement is allowed", "multiple_statements")

        if not re.match(r"^\s*(select|with)\b", scan, flags=re.IGNORECASE):
            result.add_error("Query must start with SELECT or WITH", "not_a_select")

        # Dollar quoting and E'' escapes lex differently from plain literals;
        # `name` and [name] are identifier quotes on SQLite
        if "$" in scan or re.search(r"(?<![\w\"])[eE]'", scan):
            result.add_error("Dollar-quoted and escape strings are not supported", "unsupported_syntax")
        if re.search(r"[`\[\]]", scan):
            result.add_error("Only double quotes may quote identifiers", "unsupported_syntax")

        words = {w.lower() for w in re.findall(r"\b[A-Za-z_]+\b", self._unquoted(scan))}
        for keyword in sorted(words & self.FORBIDDEN_KEYWORDS):
            result.add_error(f"Forbidden keyword: {keyword.upper()}", "forbidden_keyword", keyword)

        for function in sorted(self.FORBIDDEN_FUNCTIONS):
            if re.search(rf"\b{function}\s*\(", scan, flags=re.IGNORECASE):
                result.add_error(f"Forbidden function: {function}", "forbidden_function", function)

        references = self.table_references(scan)
        self._check_tables(scan, references, result)
        self._check_owner_scoping(scan, references, result)

        for param in set(self.BIND_PARAM.findall(scan)):
            if param != OWNER_PARAM:
                result.add_error(
                    f"Unknown bind parameter :{param}; only :{OWNER_PARAM} is supplied",
                    "unknown_parameter",
                    param,
                )

        return result

    def build(self, sql: str) -> ReadOnlyQuery:
        """Validate ``sql``, scope every ``"Wine"`` reference to the owner and cap the rows.

        Raises:
            QueryValidationError: If any check fails
        """
        result = self.validate(sql)
        if not result.is_valid:
            raise QueryValidationError(
                "Query rejected: " + "; ".join(result.errors),
                violation_type=result.violations[0]["type"],
                details={"violations": result.violations},
            )

        text = self._normalize(sql)
        scan = mask_sql(text)
        has_limit = re.search(r"\blimit\s+\d+", scan, flags=re.IGNORECASE) is not None

        # Right to left so earlier offsets stay valid
        for reference in reversed(self.table_references(scan)):
            if not reference.is_wine:
                continue
            replacement = OWNER_SCOPED_WINE
            if not reference.has_alias:
                replacement += f" AS {reference.parts[-1]}"
            text = text[: reference.start] + replacement + text[reference.end :]

        if has_limit:
            return ReadOnlyQuery(text=text, original_text=sql)
        return ReadOnlyQuery(
            text=f"{text} LIMIT {self.row_limit}", original_text=sql, row_limit=self.row_limit
        )

    def table_references(self, scan: str) -> list[TableReference]:
        """Find every name in table position in masked SQL, at any nesting depth."""
        tokens = [(m.group(), m.start(), m.end()) for m in self.SQL_TOKEN.finditer(scan)]
        # One frame per parenthesis level: are we in a FROM list, is a table name due next
        frames = [{"from_list": False, "expect_table": False, "expression": False}]
        references: list[TableReference] = []
        previous = ""
        i = 0

        while i < len(tokens):
            token, start, _end = tokens[i]
            word = token.lower()
            frame = frames[-1]

            if token == "(":
                # FROM ("Wine" w JOIN ...) keeps listing tables inside the parentheses
                in_table_slot = frame["expect_table"]
                frame["expect_table"] = False
                frames.append(
                    {
                        "from_list": in_table_slot,
                        "expect_table": in_table_slot,
                        "expression": previous in self.EXPRESSION_FROM_FUNCTIONS,
                    }
                )
            elif token == ")":
                if len(frames) > 1:
                    frames.pop()
            elif word == "from" and not frame["expression"] and previous != "distinct":
                frame["from_list"] = True
                frame["expect_table"] = True
            elif word == "join":
                frame["from_list"] = True
                frame["expect_table"] = True
            elif word in self.FROM_LIST_END:
                frame["from_list"] = False
                frame["expect_table"] = False
            elif token == ",":
                frame["expect_table"] = frame["from_list"]
            elif frame["expect_table"] and word in {"lateral", "only"}:
                pass
            elif frame["expect_table"] and self._is_name(token):
                last = i
                parts = [token]
                while (
                    last + 2 < len(tokens)
                    and tokens[last + 1][0] == "."
                    and self._is_name(tokens[last + 2][0])
                ):
                    parts.append(tokens[last + 2][0])
                    last += 2
                following = tokens[last + 1][0] if last + 1 < len(tokens) else ""
                has_alias = following.lower() == "as" or (
                    self._is_name(following) and following.lower() not in self.NOT_AN_ALIAS
                )
                references.append(TableReference(start, tokens[last][2], tuple(parts), has_alias))
                frame["expect_table"] = False
                previous = parts[-1].lower()
                i = last + 1
                continue
            else:
                frame["expect_table"] = False

            previous = word
            i += 1

        return references

    def _normalize(self, sql: str) -> str:
        cleaned = strip_sql_comments(strip_code_fences(sql or "")).strip()
        return cleaned.rstrip(";").strip()

    @staticmethod
    def _is_name(token: str) -> bool:
        return token.startswith('"') or re.fullmatch(r"[A-Za-z_]\w*", token) is not None

    @staticmethod
    def _unquoted(scan: str) -> str:
        # Quoted identifiers ("set", "type") are names, not keywords
        return re.sub(r'"[^"]*"', '""', scan)

    def _check_tables(self, scan: str, references: list[TableReference], result: ValidationResult) -> None:
        cte_names = set(self.CTE_NAME.findall(scan))

        for name in cte_names:
            if name.lower() == WINE_TABLE.lower():
                result.add_error(f"A CTE may not be named {name}", "forbidden_table", name)

        for reference in references:
            written = ".".join(reference.parts)
            if reference.schema is not None and reference.schema not in self.ALLOWED_SCHEMAS:
                result.add_error(f"Table outside the cellar schema: {written}", "forbidden_table", written)
            elif not reference.is_wine and reference.name not in cte_names:
                result.add_error(
                    f"Only the \"{WINE_TABLE}\" table may be queried, found {written}",
                    "forbidden_table",
                    written,
                )

    def _check_owner_scoping(
        self, scan: str, references: list[TableReference], result: ValidationResult
    ) -> None:
        # Isolation comes from the rewrite in build(); these hold generated text to the planner's format
        predicates = self.OWNER_PREDICATE.findall(scan)
        if not predicates:
            result.add_error(
                f'Query must filter with "userId" = :{OWNER_PARAM}', "missing_owner_scope"
            )
            return

        # Every mention of userId must be the owner predicate itself
        if len(self.USER_ID_REFERENCE.findall(scan)) != len(predicates):
            result.add_error(
                f'userId may only appear as "userId" = :{OWNER_PARAM}', "owner_scope_tampering"
            )

        if sum(1 for reference in references if reference.is_wine) > len(predicates):
            result.add_error(
                f'Each reference to "{WINE_TABLE}" needs its own owner filter', "missing_owner_scope"
            )

        if re.search(r"\bor\s+(?:\w+\.)?\"?userId|:" + OWNER_PARAM + r"\s+or\b", scan, flags=re.IGNORECASE):
            result.add_error("Owner filter may not be combined with OR", "owner_scope_tampering")
