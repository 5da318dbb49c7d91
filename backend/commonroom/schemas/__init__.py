"""Pydantic Schemas — request validation at the API boundary.

Invariants:
    - Schemas validate user input only; stored records are normalized by core/records.py
    - Domain enums from core/domain_types.py used for enum fields
"""
