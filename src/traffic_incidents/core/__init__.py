"""Cross-cutting core components shared by every layer."""
