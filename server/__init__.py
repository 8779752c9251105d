"""HTTP server package."""
