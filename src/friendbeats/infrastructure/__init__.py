"""Infrastructure layer: Spotify integrations, persistence and observability."""
