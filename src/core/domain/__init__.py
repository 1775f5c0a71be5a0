"""Domain models and entities.

Why:
- Pure data structures (Pydantic v2) for cards, decks, tags and zones.
- The domain knows nothing about HTTP or the CLI.
"""
