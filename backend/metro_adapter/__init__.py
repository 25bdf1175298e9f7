"""
Metro review adapter.

This package provides:
- Link validation for bot extra links (core/links.py)
- Record synthesis for first-time inserts (core/record.py)
- The review action state machine (core/lifecycle.py)
- The SQLAlchemy bots store (services/bot_store.py)
- FastAPI routes for the review framework (api/)
"""
