"""
ResourcePlanner - Resource Allocation Engine

This package contains the ResourcePlanner allocation engine:
- domain: Entities (employees, projects, holidays, vacations, allocations) and settings
- engine: Calendar arithmetic, capacity, allocation index, conflict evaluation, mutations
- storage: SQLAlchemy snapshot store used by the CRUD layer
- platform: Cross-cutting concerns (configuration, logging)
"""

__version__ = "0.1.0"
