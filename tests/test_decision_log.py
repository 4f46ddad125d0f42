"""Tests for the interaction log."""
from collage_backend.services.decision_log import CSV_HEADER, DecisionLog
from collage_shared.protocol import Decision, DecisionRow


def row(decision=Decision.ACCEPT, prompts="a | b", explanations="x ; y"):
    return DecisionRow("2024-03-02T10:00:00+00:00", decision, prompts, explanations)


def test_empty_log_is_header_only():
    assert DecisionLog().to_csv() == '"timestamp","user_decision","prompts","internal_explanations"'


def test_rows_keep_arrival_order():
    log = DecisionLog()
    log.record(row(Decision.SKIP))
    log.record(row(Decision.ACCEPT))
    assert len(log) == 2
    assert [r.decision for r in log.rows()] == [Decision.SKIP, Decision.ACCEPT]


def test_csv_quotes_everything_and_doubles_quotes():
    log = DecisionLog()
    log.record(row(prompts='Tape a "thin" strip', explanations="one, two"))
    lines = log.to_csv().split("\n")

    assert len(lines) == 2
    assert lines[0] == ",".join(f'"{h}"' for h in CSV_HEADER)
    assert lines[1] == (
        '"2024-03-02T10:00:00+00:00","accept","Tape a ""thin"" strip","one, two"'
    )


def test_rows_returns_a_copy():
    log = DecisionLog()
    log.record(row())
    log.rows().clear()
    assert len(log) == 1
