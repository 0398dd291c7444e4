"""Infrastructure Layer: database client and logging setup.

Invariants:
    - Infrastructure depends on core/ for error types and pure helpers only
    - Driver exceptions are mapped to core/errors.py types at this boundary
"""
