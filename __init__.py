"""PaisaPal personal finance tracker.

Flat collection of modules behind a Streamlit dashboard (``app.py``) and a
small FastAPI tool server (``api_server.py``). ``seed_db.py`` creates a demo
account with sample data.
"""
