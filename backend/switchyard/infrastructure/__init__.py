"""Infrastructure Layer — database access, session tokens, logging setup.

Invariants:
    - Implements the core boundary protocols; core never imports from here
"""
