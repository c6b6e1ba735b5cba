"""Test schema loading for the core and the bundled protocol."""

from core.db import get_connection, init_database
from core.session import DEFAULT_PROTOCOL_DIR


def table_names(conn):
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'")
    return {row[0] for row in rows}


def test_bundled_protocol_schema_loads() -> None:
    conn = get_connection()
    init_database(conn, DEFAULT_PROTOCOL_DIR)

    assert table_names(conn) == {'pending_mutations', 'my_info', 'peers', 'messages', 'channels'}


def test_comment_punctuation_does_not_split_statements(tmp_path) -> None:
    events = tmp_path / 'events' / 'note'
    events.mkdir(parents=True)
    (events / 'note.sql').write_text(
        "-- Notes; one row per id\n"
        "CREATE TABLE IF NOT EXISTS notes (\n"
        "    id TEXT PRIMARY KEY, -- unique; never reused\n"
        "    body TEXT NOT NULL\n"
        ");\n"
        "CREATE INDEX IF NOT EXISTS idx_notes_body ON notes(body);\n"
    )
    conn = get_connection()
    init_database(conn, str(tmp_path))

    assert 'notes' in table_names(conn)
    conn.execute("INSERT INTO notes (id, body) VALUES ('n1', 'hello')")
    assert conn.execute("SELECT body FROM notes").fetchone()[0] == 'hello'


def test_init_is_repeatable() -> None:
    conn = get_connection()
    init_database(conn, DEFAULT_PROTOCOL_DIR)
    init_database(conn, DEFAULT_PROTOCOL_DIR)

    assert 'channels' in table_names(conn)
