import re

# Substring deny-list, checked against the upper-cased query
FORBIDDEN_TOKENS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "EXEC",
    "EXECUTE",
    "UNION",
    "--",
    "/*",
)

SELECT_STRUCTURE = re.compile(r"SELECT\s+.+\s+FROM\s+\w+")


def is_safe_read_query(candidate: str) -> bool:
    """
    Decide whether a generated query is an acceptable read-only request.

    Rules (all must hold):
        - not empty / whitespace only
        - starts with SELECT
        - contains FROM
        - no forbidden token anywhere (write keywords, UNION, comments)
        - matches "SELECT <something> FROM <identifier>"

    Upper-casing is only used for the checks; the caller keeps executing
    the string exactly as given.

    Example:
        is_safe_read_query("select nome from clientes limit 10")  -> True
        is_safe_read_query("SELECT * FROM clientes; DROP TABLE x") -> False
    """
    if not candidate or not candidate.strip():
        return False

    query = candidate.strip().upper()

    if not query.startswith("SELECT"):
        return False

    if "FROM" not in query:
        return False

    if any(token in query for token in FORBIDDEN_TOKENS):
        return False

    return SELECT_STRUCTURE.search(query) is not None
