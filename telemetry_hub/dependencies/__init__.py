"""
FastAPI Dependencies

- auth.py - API key checks and node identification
- services.py - Per-request stores and services
"""
