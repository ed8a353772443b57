import re

DEFAULT_TABLE = "clientes"

FROM_TABLE = re.compile(r"from\s+(\w+)")


def resolve_table(validated_query: str) -> str:
    """
    Name of the collection a validated query reads from.

    Single-table approximation: only the first "from <identifier>" counts,
    joins and subqueries are ignored. Falls back to DEFAULT_TABLE.
    """
    match = FROM_TABLE.search((validated_query or "").strip().lower())
    if not match:
        return DEFAULT_TABLE
    return match.group(1)
