"""Relational credential store."""

from creditgate.store.credentials import CredentialStore
from creditgate.store.db import create_engine, init_schema, metadata, truncate_all

__all__ = ["CredentialStore", "create_engine", "init_schema", "metadata", "truncate_all"]
