"""CMG Tools Hub: internal tool directory with a moderation workflow."""
