"""
Development server for the Conquest API.
Run from the repo root: python server.py
Needs the probability cache (python -m conquest.scripts.precompute_probabilities) first.
"""

import os

import uvicorn

HOST = os.environ.get("CONQUEST_HOST", "127.0.0.1")
PORT = int(os.environ.get("CONQUEST_PORT", "8000"))

if __name__ == "__main__":
    uvicorn.run("conquest.api.main:app", host=HOST, port=PORT)
