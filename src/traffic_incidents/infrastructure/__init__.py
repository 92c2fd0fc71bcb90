"""Infrastructure adapters: persistence and the traffic feed."""
