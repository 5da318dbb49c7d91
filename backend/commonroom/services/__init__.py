"""Services Layer — multi-key read/compute/write sequences over the KV store.

Invariants:
    - One service per component; every multi-key sequence lives in one named method
    - Services hold no state across requests (collaborators injected per request)
    - No cross-key atomicity is assumed anywhere in this package
"""
