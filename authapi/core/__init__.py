"""Core Layer: pure configuration rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from api/, infrastructure/ or startup
    - Functions take the environment as an argument, never read os.environ
"""
