from classroom_attendance.database.bootstrap import SCHEMA_PATH, SEED_PATH, iter_sql_statements


def test_split_respects_quotes_and_comments():
    sql = """
    -- header; with semicolon
    INSERT INTO t (a) VALUES ('x;y');
    INSERT INTO t (a) VALUES ("it's");
    SELECT 1
    """

    stmts = list(iter_sql_statements(sql))

    assert stmts == [
        "INSERT INTO t (a) VALUES ('x;y')",
        "INSERT INTO t (a) VALUES (\"it's\")",
        "SELECT 1",
    ]


def test_shipped_schema_defines_ledger_constraints():
    stmts = list(iter_sql_statements(SCHEMA_PATH.read_text(encoding="utf-8")))
    records = next(s for s in stmts if "CREATE TABLE IF NOT EXISTS attendance_records" in s)

    assert "UNIQUE" in records
    assert "ON DELETE CASCADE" in records
    assert any("attendance_sessions" in s and "qr_token" in s for s in stmts)
    assert list(iter_sql_statements(SEED_PATH.read_text(encoding="utf-8")))


def test_token_column_compares_case_sensitively():
    stmts = list(iter_sql_statements(SCHEMA_PATH.read_text(encoding="utf-8")))
    sessions = next(s for s in stmts if "CREATE TABLE IF NOT EXISTS attendance_sessions" in s)
    token_line = next(line for line in sessions.splitlines() if line.strip().startswith("qr_token"))

    assert "COLLATE utf8mb4_bin" in token_line
