"""Per-entity and cross-entity statistics over the daily timeline."""
