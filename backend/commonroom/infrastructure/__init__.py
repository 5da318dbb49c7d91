"""Infrastructure Layer — store, identity and blob clients, logging.

Invariants:
    - Every external failure is mapped to a CommonroomError subclass before it
      leaves this package
"""
