"""Commonroom Application Package — consistency layer for the campus platform.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
