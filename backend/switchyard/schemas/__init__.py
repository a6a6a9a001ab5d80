"""Procedure Schemas — pydantic input and response models for the procedure tree.

Invariants:
    - Input models inherit StrictInput (no extras, no silent coercion)
    - Response models are plain BaseModel built from ORM rows via from_attributes
"""
