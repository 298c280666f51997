"""Domain layer: immutable value objects and domain events."""
