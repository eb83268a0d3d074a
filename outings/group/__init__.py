"""Groups materialized from outing requests."""
