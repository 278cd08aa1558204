"""Core update orchestration: configuration, manifest, safety and execution."""
