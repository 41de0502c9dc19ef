"""
API routes for live nodes, node inventory and health.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from config import SERVICE_NAME

router = APIRouter()


@router.get("/api/live-nodes")
@router.get("/api/lightning-nodes")
def live_nodes(request: Request):
  """Return nodes heard within the staleness window."""
  nodes = request.app.state.registry.snapshot()
  return [node.to_payload() for node in nodes]


@router.get("/api/nodes")
async def inventory_nodes(request: Request):
  """Return nodes from the external inventory sources."""
  return await request.app.state.inventory.fetch()


@router.get("/api/health")
def health(request: Request):
  """Report subscriber connectivity and registry size."""
  subscriber = request.app.state.subscriber
  connected = bool(subscriber is not None and subscriber.connected)
  size = len(request.app.state.registry)
  return {
    "status": "ok",
    "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    "service": SERVICE_NAME,
    "mqtt_connected": connected,
    "live_nodes": size,
    # keys read by existing map frontends
    "lightningMqttConnected": connected,
    "lightningNodes": size,
  }
