"""
Turf API routes package.
Split into smaller modules by entity for maintainability.
"""
