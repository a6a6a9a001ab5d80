"""API Layer — HTTP transport for the procedure tree.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Every response body is either {"result": {...}} or {"error": {...}}

Design Decisions:
    - Thin routes: adapt HTTP to RawRequest/JsonText and delegate to ProcedureDispatch
"""
