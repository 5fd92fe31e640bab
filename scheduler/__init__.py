"""Scheduling engine: time codec, recurrence, status, placement, drag reconciliation."""
