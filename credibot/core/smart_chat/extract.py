# -----------------------------------------------------------------------------
# EXTRACT - Pull a query string out of a free-form model reply
# Returns "" when the reply carries no query. Never validates or executes.
# -----------------------------------------------------------------------------

import re

SQL_MARKER = "SQL:"

# Best-effort fallback when the model ignores the "SQL:" contract.
# WHERE and ORDER BY run up to the next clause, a ";" or the end of the line.
SELECT_FRAGMENT = re.compile(
    r"SELECT\s+.+?FROM\s+\w+"
    r"(?:\s+WHERE\s+.+?(?=\s+ORDER\s+BY\s|\s+LIMIT\s|;|\n|$))?"
    r"(?:\s+ORDER\s+BY\s+.+?(?=\s+LIMIT\s|;|\n|$))?"
    r"(?:\s+LIMIT\s+\d+)?",
    re.IGNORECASE,
)

CODE_FENCE = re.compile(r"```[A-Za-z]*")
WHITESPACE = re.compile(r"\s+")


def extract_query(model_text: str) -> str:
    """
    Extract the query from a model reply.

    Priority:
        1. reply starts with "SQL:"   -> everything after the marker
        2. "SQL:" appears somewhere   -> everything after its first occurrence
        3. SELECT ... FROM <word> fragment anywhere in the text

    Example:
        extract_query("SQL: SELECT nome FROM clientes LIMIT 10;")
        -> "SELECT nome FROM clientes LIMIT 10"
    """
    text = (model_text or "").strip()

    if text.startswith(SQL_MARKER):
        raw = text[len(SQL_MARKER):]
    elif SQL_MARKER in text:
        raw = text[text.index(SQL_MARKER) + len(SQL_MARKER):]
    else:
        match = SELECT_FRAGMENT.search(text)
        raw = match.group(0) if match else ""

    return clean_query(raw)


def clean_query(raw: str) -> str:
    """Strip code fences, one trailing ';' and collapse whitespace."""
    query = CODE_FENCE.sub("", raw)
    query = query.strip()
    if query.endswith(";"):
        query = query[:-1]
    query = WHITESPACE.sub(" ", query)
    return query.strip()
