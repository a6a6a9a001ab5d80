"""Switchyard — typed procedure dispatch between an HTTP transport and a data store.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
