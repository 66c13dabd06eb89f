"""Core layer — models, configuration, persistence and install services."""
