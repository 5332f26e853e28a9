"""
Adyen Checkout Provider API

Payment provider service adapting the store's order/payment contract to
Adyen Checkout (payment links + classic modifications + webhooks).
Port 8190.

Endpoints:
  /api/health                                -- health check
  /api/v1/status                             -- API status and capabilities
  /api/v1/payments/providers/{alias}         -- provider capabilities
  /api/v1/payments/{alias}/form              -- start checkout
  /api/v1/payments/{alias}/{action}          -- cancel | capture | refund | status
  /api/v1/webhooks/adyen                     -- Adyen notifications
  /api/docs                                  -- Swagger UI documentation

Run with:
    uvicorn app:app --host 127.0.0.1 --port 8190
"""

import datetime
import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

import config
from routers import payments, webhooks

# --- Logging ---
logging.basicConfig(
  level=logging.INFO,
  format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger("adyenpay.api")

# --- FastAPI app ---
app = FastAPI(
  title="Adyen Checkout Provider API",
  description="Payment links, modifications and webhook handling for Adyen Checkout.",
  version=config.API_VERSION,
  docs_url="/api/docs",
  redoc_url="/api/redoc",
  openapi_url="/api/openapi.json",
)

# --- Register routers ---
app.include_router(payments.router)
app.include_router(webhooks.router)


# --- Health and status ---

class HealthResponse(BaseModel):
  status: str
  service: str
  version: str
  timestamp: str
  environment: str


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
  """Health check endpoint for monitoring and load balancers."""
  return HealthResponse(
    status="healthy",
    service="adyen-checkout-provider",
    version=config.API_VERSION,
    timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
    environment="test" if config.ADYEN_TEST_MODE else "live",
  )


@app.get("/api/v1/status")
async def api_status():
  """API status and capabilities."""
  return JSONResponse(
    content={
      "ok": True,
      "data": {
        "status": "operational",
        "version": config.API_VERSION,
        "capabilities": [
          "health-check",
          "payment-form",
          "payment-cancel",
          "payment-capture",
          "payment-refund",
          "payment-status",
          "adyen-webhook",
        ],
        "endpoints": {
          "health": "/api/health",
          "provider": "/api/v1/payments/providers/{alias}",
          "form": "/api/v1/payments/{alias}/form",
          "action": "/api/v1/payments/{alias}/{action}",
          "adyen_webhook": "/api/v1/webhooks/adyen",
          "docs": "/api/docs",
        },
      },
      "error": None,
    }
  )


if __name__ == "__main__":
  import uvicorn
  logger.info("Starting Adyen Checkout Provider API on %s:%d", config.API_HOST, config.API_PORT)
  uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
