"""Domain layer (pure logic).

- Keep envelope and session rules here.
- Avoid I/O: no DB sessions, no FastAPI, no websockets.
- Prefer deterministic functions (time/random passed in as arguments).
"""
