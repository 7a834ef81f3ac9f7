"""
FastAPI service for signal-risk.

Provides REST API for:
- GET /assets - Monitored assets and current risk
- POST /feeds/scan, GET /feeds/stream - Headline triage
- POST /analyze, POST /analyze/batch - Deep analysis and scoring
- GET /scenarios, POST /scenarios/{id}/inject - Demo scenarios
- GET /health - Service health check
"""

from signal_risk.api.app import create_app

__all__ = ["create_app"]
