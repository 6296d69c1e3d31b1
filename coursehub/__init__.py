"""Course catalog aggregation service."""
