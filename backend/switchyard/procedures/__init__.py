"""Procedure Tree — handler modules and the root router that composes them.

Invariants:
    - Every procedure path is registered explicitly in app_router.build_app_router()
    - Handlers return Ok/Err; coordinated multi-writes go through run_transaction()
"""
