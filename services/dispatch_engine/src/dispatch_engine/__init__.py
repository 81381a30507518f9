"""Notification dispatch: rendering, provider fallback and the failure log."""
