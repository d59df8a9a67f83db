"""Domain layer: resource entities, ownership rules, value objects and errors."""
