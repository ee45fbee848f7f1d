"""Property repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.property import Property, Underwriting


class PropertyRepository(Protocol):
    """Repository for properties and their underwriting inputs."""

    def get_by_id(self, property_id: int) -> Optional[Property]:
        """Retrieve a property by ID."""
        ...

    def list_all(self) -> list[Property]:
        """List all properties ordered by address."""
        ...

    def create(self, prop: Property, underwriting: Underwriting) -> Property:
        """Create a property together with its underwriting row."""
        ...

    def update(self, prop: Property) -> Property:
        """Update an existing property."""
        ...

    def delete(self, property_id: int) -> bool:
        """Delete a property and everything attached to it."""
        ...

    def get_underwriting(self, property_id: int) -> Optional[Underwriting]:
        """Return the underwriting inputs for a property."""
        ...

    def save_underwriting(self, underwriting: Underwriting) -> Underwriting:
        """Insert or update underwriting inputs."""
        ...
