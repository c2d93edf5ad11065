# File: civic_portal/main.py
# Project: civic-portal

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler

from civic_portal.core.config import cors_origins_list, settings
from civic_portal.core.errors import register_error_handlers
from civic_portal.core.ratelimit import limiter
from civic_portal.routers import home, auth, report, community, issue_map, analytics
from civic_portal.routers import dashboard, portal

logging.basicConfig(
    level=getattr(logging, (settings.log_level or "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Civic Portal API")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_list(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
def health():
    return {"ok": True, "backend": settings.entity_backend}

app.include_router(home.router)
app.include_router(auth.router)
app.include_router(report.router)
app.include_router(community.router)
app.include_router(issue_map.router)
app.include_router(analytics.router)
app.include_router(dashboard.router)
app.include_router(portal.router)
