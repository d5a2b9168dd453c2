"""Service layer: business rules, persistence and rendering."""
