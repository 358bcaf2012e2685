"""Read-only dashboard aggregations and tax reminders."""
