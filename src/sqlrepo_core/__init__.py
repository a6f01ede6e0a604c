"""Core contracts for sqlrepo: settings, exceptions and repository protocols."""
