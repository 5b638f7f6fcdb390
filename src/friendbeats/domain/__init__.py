"""Domain layer: DTOs, exceptions, ports and value objects."""
