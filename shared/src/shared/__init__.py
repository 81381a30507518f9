"""Shared kernel: enums, settings, logging, event payloads and persistence."""
