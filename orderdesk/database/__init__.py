"""
Database package initialization.

The package follows a modular structure:
- base: declarative base and the soft-delete mixin
- models: ``orders`` and ``shipments`` table models
- connection: async engine, scoped sessions and schema creation
"""

# Import submodules explicitly when needed to avoid circular dependencies

__all__ = []
