"""Shared test support: record types and table DDL."""
