"""PostgreSQL catalog statements used for schema introspection."""

LIST_TABLES = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = current_schema() AND table_type = 'BASE TABLE'
"""

DESCRIBE_TABLE = """
    SELECT column_name, data_type, is_nullable, column_default, character_maximum_length
    FROM information_schema.columns
    WHERE table_schema = current_schema() AND table_name = %s
    ORDER BY ordinal_position
"""

LAST_VALUE = "SELECT lastval()"

CURRENT_VALUE = "SELECT currval(%s)"
