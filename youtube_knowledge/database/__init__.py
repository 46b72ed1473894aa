"""SQLite storage: schema, migrations and the Repository."""
