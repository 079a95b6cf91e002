"""HTTP surface for registry lookups."""
