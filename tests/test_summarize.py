from credibot.core.smart_chat.summarize import (
    MAX_SUMMARY_RECORDS,
    NO_RECORDS_MESSAGE,
    format_value,
    summarize,
)


def test_empty_result_set():
    assert summarize([]) == NO_RECORDS_MESSAGE


def test_header_and_allowed_fields_only(client_rows):
    summary = summarize(client_rows(2))

    assert summary.startswith("Total records: 2\n")
    assert "Record 1:" in summary
    assert "Record 2:" in summary
    assert "  nome: Cliente 1" in summary
    assert "  score_credito: 601" in summary
    assert "  classe_risco: B" in summary
    # not in the allow-list
    assert "renda_mensal" not in summary
    assert "id:" not in summary
    assert "omitted" not in summary


def test_twelve_records_show_five_sections_and_omitted_count(client_rows):
    summary = summarize(client_rows(12))

    assert summary.startswith("Total records: 12\n")
    assert summary.count("Record ") == 5
    assert "Record 6:" not in summary
    assert "... and 7 more records omitted" in summary


def test_section_count_is_bounded(client_rows):
    for size in (1, 5, 6, 50, 500):
        summary = summarize(client_rows(size))
        assert summary.count("Record ") == min(size, MAX_SUMMARY_RECORDS)


def test_exactly_five_records_has_no_omitted_line(client_rows):
    assert "omitted" not in summarize(client_rows(5))


def test_aggregate_fields():
    summary = summarize([{"count": 42, "avg": 687.5, "sum": 1000.0}])
    assert "  count: 42" in summary
    assert "  avg: 687.5" in summary
    assert "  sum: 1000" in summary


def test_field_order_follows_allow_list():
    summary = summarize([{"status": "ativo", "nome": "Ana", "dias_atraso": 0}])
    assert summary.index("nome") < summary.index("status") < summary.index("dias_atraso")


def test_deterministic(client_rows):
    rows = client_rows(8)
    assert summarize(rows) == summarize(rows)


def test_format_value():
    assert format_value(True) == "true"
    assert format_value(False) == "false"
    assert format_value(None) == "null"
    assert format_value(720) == "720"
    assert format_value(720.0) == "720"
    assert format_value(0.15) == "0.15"
    assert format_value("aprovado") == "aprovado"
    assert format_value({"a": 1}) == '{"a": 1}'
    assert format_value([1, 2]) == "[1, 2]"
