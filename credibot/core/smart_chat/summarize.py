# -----------------------------------------------------------------------------
# SUMMARIZE - Compress a result set into a short digest for the answer prompt
# Output size is bounded whatever the input size, so prompt tokens stay capped.
# -----------------------------------------------------------------------------

import json
from typing import List, Sequence

from credibot.core.schemas import JSONValue, Record

NO_RECORDS_MESSAGE = "No records found."

# Records rendered in full; the rest only counted
MAX_SUMMARY_RECORDS = 5

# Fields worth spending tokens on, in display order
IMPORTANT_FIELDS = (
    "nome",
    "score_credito",
    "classe_risco",
    "valor_solicitado",
    "valor_aprovado",
    "decisao",
    "status",
    "modalidade",
    "dias_atraso",
    "count",
    "avg",
    "sum",
)


def format_value(value: JSONValue) -> str:
    """
    Natural text form of a record value.

    Example:
        format_value(True)        -> "true"
        format_value(None)        -> "null"
        format_value(720)         -> "720"
        format_value({"a": 1})    -> '{"a": 1}'
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def summarize_record(index: int, record: Record) -> List[str]:
    lines = [f"Record {index}:"]
    for field in IMPORTANT_FIELDS:
        if field in record:
            lines.append(f"  {field}: {format_value(record[field])}")
    return lines


def summarize(records: Sequence[Record]) -> str:
    """
    Build the data digest sent to the answer prompt.

    Layout:
        Total records: 12

        Record 1:
          nome: Ana
          score_credito: 720

        ...
        ... and 7 more records omitted

    Only IMPORTANT_FIELDS are shown, for at most MAX_SUMMARY_RECORDS records.
    """
    if not records:
        return NO_RECORDS_MESSAGE

    lines = [f"Total records: {len(records)}", ""]

    for index, record in enumerate(records[:MAX_SUMMARY_RECORDS], start=1):
        lines.extend(summarize_record(index, record))
        lines.append("")

    omitted = len(records) - MAX_SUMMARY_RECORDS
    if omitted > 0:
        lines.append(f"... and {omitted} more records omitted")

    return "\n".join(lines).rstrip() + "\n"
