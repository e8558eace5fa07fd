# src/linksy/main.py
"""
Linksy API application.

Run locally with `linksy-api` or `uvicorn src.linksy.main:app --reload`.
"""

import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI

from .config import get_config
from .domains.hosts.api import public as public_router
from .domains.hosts.api import router as hosts_router
from .domains.notifications.api import router as notifications_router
from .domains.providers.api import admin as providers_admin_router
from .domains.providers.api import router as providers_router
from .domains.tenants.api import audit as audit_router
from .domains.tenants.api import modules as modules_router
from .domains.tenants.api import router as tenants_router
from .domains.tickets.api import admin as tickets_admin_router
from .domains.tickets.api import router as tickets_router
from .domains.webhooks.api import router as webhooks_router
from .errors import register_error_handlers
from .infrastructure import rate_limit_middleware

config = get_config()

logging.basicConfig(
    level=getattr(logging, config.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Linksy", version="1.0.0")

register_error_handlers(app)
app.middleware("http")(rate_limit_middleware)

app.include_router(tickets_router)
app.include_router(tickets_admin_router)
app.include_router(providers_router)
app.include_router(providers_admin_router)
app.include_router(tenants_router)
app.include_router(modules_router)
app.include_router(audit_router)
app.include_router(webhooks_router)
app.include_router(notifications_router)
app.include_router(hosts_router)
app.include_router(public_router)


@app.get("/health")
async def health():
    return {"status": "ok", "environment": config.environment}


logger.info(f"🚀 Linksy API ready ({config.environment})")


def run():
    import uvicorn

    uvicorn.run("src.linksy.main:app", host=config.api_host, port=config.api_port, reload=config.debug)
