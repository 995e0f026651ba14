"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from schemas/, api/, infrastructure/, or db/
    - Functions are pure; the forecast noise draw goes through an injected rng

Design Decisions:
    - Functional core separated from imperative shell: routes load deals,
      core scores and aggregates them, routes serialize the result
"""
