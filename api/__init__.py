"""
Product Commitment API (FastAPI)

HTTP API for committing and verifying product records:
- POST /add - Commit a product record
- POST /verify - Verify a product against its anchored root
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
