"""Core Layer — pure domain rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic (clock values are passed in)

Design Decisions:
    - Functional core separated from imperative shell: services load records,
      call core rules, then write back (ADR: impureim sandwich)
"""
