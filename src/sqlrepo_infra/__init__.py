"""SQLAlchemy-backed implementations of the sqlrepo interfaces."""
