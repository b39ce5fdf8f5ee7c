"""
SafeStake Registry HTTP service.

Exposes the compliance engine over FastAPI with a SQLite-backed store.
Run with: uvicorn safestake_service.main:app
"""
