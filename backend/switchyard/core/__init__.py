"""Core Layer — procedure framework: routing, guards, validation, errors, paging.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Guards, validation, routing and error mapping are pure and deterministic

Design Decisions:
    - Functional core separated from the imperative shell (transport + store)
"""
