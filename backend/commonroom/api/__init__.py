"""API Layer — FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Every route resolves an authenticated caller before touching a service

Design Decisions:
    - Thin routes delegate to services (ADR: impureim sandwich)
"""
