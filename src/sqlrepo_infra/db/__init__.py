"""Database engine, session, query and audit plumbing."""
