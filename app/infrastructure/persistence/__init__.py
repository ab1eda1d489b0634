"""Relational persistence: engine, models, repositories."""
