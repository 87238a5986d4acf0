"""HTTP API: health endpoints and the versioned router."""
