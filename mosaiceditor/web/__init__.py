"""Web module - HTTP surface for stateless redaction."""
