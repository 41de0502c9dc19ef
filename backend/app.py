"""
Mesh Live Map - FastAPI Application

Wires the live node registry, the MQTT ingestion path and the HTTP routes.
Run with `uvicorn app:app` from this directory.
"""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS, MQTT_ENABLED, STATIC_DIR
from routes.api import router as api_router
from routes.debug import router as debug_router
from routes.static import SPAStaticFiles
from services.ingest import Ingestor
from services.inventory import InventoryAggregator
from services.mqtt import MeshSubscriber
from state import NodeRegistry


def create_app(static_dir: str = STATIC_DIR) -> FastAPI:
  app = FastAPI(title="Mesh Live Map", version="1.0.0")
  app.add_middleware(CORSMiddleware, allow_origins=CORS_ORIGINS, allow_methods=["GET"], allow_headers=["*"])

  # One registry per process, shared by the subscriber and the read routes
  registry = NodeRegistry()
  app.state.registry = registry
  app.state.ingestor = Ingestor(registry)
  app.state.inventory = InventoryAggregator()
  app.state.subscriber = None

  app.include_router(api_router)
  app.include_router(debug_router)

  # Mounted last so it only sees paths the routers did not claim
  if os.path.isdir(static_dir):
    app.mount("/", SPAStaticFiles(directory=static_dir, html=True), name="static")

  @app.on_event("startup")
  async def startup():
    """Start the MQTT subscriber."""
    if not MQTT_ENABLED:
      print("[startup] MQTT disabled, serving inventory and empty live map only")
      return
    subscriber = MeshSubscriber(app.state.ingestor)
    subscriber.start()
    app.state.subscriber = subscriber

  @app.on_event("shutdown")
  async def shutdown():
    """Clean up on shutdown."""
    if app.state.subscriber is not None:
      app.state.subscriber.stop()
      app.state.subscriber = None

  return app


app = create_app()
