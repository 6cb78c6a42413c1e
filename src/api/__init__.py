"""
FastAPI article-tracker service.

Provides REST API for:
- GET /health - Database and session health
- POST /crawl - Run one crawl pass
- GET/POST /sources, DELETE /sources/{source_id} - Subscriptions
- GET /items - Collected items
- /notifications/* - Digest webhook settings
"""

from src.api.app import create_app

__all__ = ["create_app"]
