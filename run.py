#!/usr/bin/env python3
"""
Run script for the HTTP log service
"""
import uvicorn

from httplog.config.settings import settings
from httplog.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, timeout_graceful_shutdown=10)
