"""Persistent, human-looking browser automation driven by command batches."""
