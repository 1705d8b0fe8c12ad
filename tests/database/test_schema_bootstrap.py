from club_attendance.database.bootstrap import SCHEMA_PATH, schema_statements, split_statements


def test_semicolons_inside_literals_do_not_split():
    sql = "INSERT INTO t VALUES ('a;b', \"c;d\");\nSELECT 1;"

    assert list(split_statements(sql)) == ["INSERT INTO t VALUES ('a;b', \"c;d\")", "SELECT 1"]


def test_comments_and_trailing_statement():
    sql = "-- header; ignored\nCREATE TABLE x (id INT); -- done\nSELECT 2 - 1"

    assert list(split_statements(sql)) == ["CREATE TABLE x (id INT)", "SELECT 2 - 1"]


def test_schema_file_drops_database_switches():
    statements = schema_statements(SCHEMA_PATH.read_text(encoding="utf-8"))

    assert statements
    assert not any(s.upper().startswith(("CREATE DATABASE", "USE ")) for s in statements)
    assert any("CREATE TABLE" in s.upper() and "users" in s for s in statements)
