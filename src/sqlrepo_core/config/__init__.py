"""Configuration for sqlrepo."""
