"""Typed client-side values for ClickHouse columns, their SQL types and scalar decoding."""

__version__ = "0.1.0"
__all__ = ["unmarshal", "sqltype", "value", "value_ref", "bridge"]