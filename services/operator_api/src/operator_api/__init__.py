"""Operator HTTP API over the dispatch engine."""
