#!/usr/bin/env python3
"""Game session audit server.

Config from env vars: AUDIT_API_URL, AUDIT_RPC_URL, AUDIT_CHAIN_ID,
AUDIT_PORT, AUDIT_LOG_LEVEL.
"""

import os, sys, logging
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import uvicorn
from server.app import create_app

PORT = int(os.environ.get("AUDIT_PORT", "8000"))
LOG_LEVEL = os.environ.get("AUDIT_LOG_LEVEL", "INFO").upper()


def main():
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    main()
