"""Domain layer: repository contracts shared by services and infrastructure."""
