"""Infrastructure layer: persistence, cache, security and external clients."""
