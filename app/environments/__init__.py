"""
Environments Module - External Service Integrations

Architecture Overview:
======================
environments/
├── __init__.py           # Module exports
├── base.py               # Error taxonomy and service base class
├── notion/               # Notion database integration
│   ├── __init__.py
│   ├── client.py         # Notion API client
│   ├── schemas.py        # Destination / column data structures
│   ├── serializer.py     # Property set -> Notion wire format
│   └── renderer.py       # Schema -> chat text
└── line/                 # LINE Messaging API integration
    ├── __init__.py
    ├── client.py         # Reply API client
    ├── schemas.py        # Webhook envelope
    └── messages.py       # Reply -> LINE message objects
"""

from app.environments.base import (
    EnvironmentService,
    IntegrationError,
    ConfigError,
    NotFoundError,
    AuthError,
    UpstreamError,
)

__all__ = [
    "EnvironmentService",
    "IntegrationError",
    "ConfigError",
    "NotFoundError",
    "AuthError",
    "UpstreamError",
]
