"""
Module 07 - HTTP API (FastAPI)

HTTP API for the epoch snapshot generator:
- POST /epochs/snapshot - Generate and publish an epoch snapshot
- POST /epochs/{epoch_id}/resume - Resume a failed run
- POST /claims - Claim info with Merkle proofs
- POST /proofs/verify - Offline proof check
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
