"""
Node inventory aggregation from public map sources.

Sources are tried in order; the first one that yields at least one node with
usable coordinates wins. When every source fails a fixed placeholder list is
returned so the endpoint always has something to show.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

import httpx

from config import INVENTORY_SOURCES, INVENTORY_TIMEOUT_SECONDS, INVENTORY_USER_AGENT
from decoder import COORD_SCALE, _valid_lat_lon

FALLBACK_NODES: List[Dict[str, Any]] = [
  {"id": "test1", "name": "Test Node NYC", "latitude": 40.7128, "longitude": -74.0060, "hardware": "Test Hardware"},
  {"id": "test2", "name": "Test Node LA", "latitude": 34.0522, "longitude": -118.2437, "hardware": "Test Hardware"},
  {"id": "test3", "name": "Test Node Chicago", "latitude": 41.8781, "longitude": -87.6298, "hardware": "Test Hardware"},
  {"id": "test4", "name": "Test Node Houston", "latitude": 29.7604, "longitude": -95.3698, "hardware": "Test Hardware"},
  {"id": "test5", "name": "Test Node Philadelphia", "latitude": 39.9526, "longitude": -75.1652, "hardware": "Test Hardware"},
]


def _first_present(obj: Dict[str, Any], *keys: str) -> Any:
  for key in keys:
    value = obj.get(key)
    if value is not None and value != "":
      return value
  return None


def _first_coord(obj: Dict[str, Any], *keys: str) -> Any:
  # sources report 0 for nodes without a fix
  for key in keys:
    value = obj.get(key)
    if value is None or value == "" or value == 0:
      continue
    return value
  return None


def _scaled_coord(value: Any) -> float:
  try:
    return float(value) / COORD_SCALE
  except (TypeError, ValueError):
    return math.nan


def normalize_inventory_node(node: Dict[str, Any]) -> Dict[str, Any]:
  """Map the field names used by the various sources onto one shape."""
  position = node.get("position")
  if not isinstance(position, dict):
    position = {}
  lat = _first_coord(node, "latitude", "lat")
  if lat is None:
    lat = _first_coord(position, "lat", "latitude")
  lon = _first_coord(node, "longitude", "lng", "lon")
  if lon is None:
    lon = _first_coord(position, "lng", "longitude")

  return {
    "id": _first_present(node, "id", "node_id", "hex_id"),
    "name": _first_present(node, "name", "longName", "long_name", "shortName", "short_name"),
    "latitude": _scaled_coord(lat),
    "longitude": _scaled_coord(lon),
    "hardware": _first_present(node, "hardware", "hwModel", "hw_model"),
    "lastSeen": _first_present(node, "last_seen", "lastSeen", "updated_at"),
  }


def _usable(node: Dict[str, Any]) -> bool:
  lat = node["latitude"]
  lon = node["longitude"]
  if math.isnan(lat) or math.isnan(lon):
    return False
  return _valid_lat_lon(lat, lon)


def normalize_inventory(data: Any) -> Optional[List[Dict[str, Any]]]:
  """Normalize one source response, or None if its shape is unusable."""
  if isinstance(data, list):
    entries = data
  elif isinstance(data, dict):
    entries = list(data.values())
  else:
    return None
  normalized = (normalize_inventory_node(entry) for entry in entries if isinstance(entry, dict))
  return [node for node in normalized if _usable(node)]


class InventoryAggregator:
  def __init__(
    self,
    sources: Optional[Sequence[str]] = None,
    timeout: float = INVENTORY_TIMEOUT_SECONDS,
    user_agent: str = INVENTORY_USER_AGENT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
  ) -> None:
    self.sources = list(sources) if sources is not None else list(INVENTORY_SOURCES)
    self.timeout = timeout
    self.user_agent = user_agent
    self.transport = transport

  async def fetch(self) -> List[Dict[str, Any]]:
    async with httpx.AsyncClient(
      timeout=self.timeout,
      headers={"User-Agent": self.user_agent},
      transport=self.transport,
    ) as client:
      for url in self.sources:
        nodes = await self._fetch_source(client, url)
        if nodes:
          print(f"[inventory] returning {len(nodes)} valid nodes from {url}")
          return nodes

    print("[inventory] all sources failed, returning placeholder nodes")
    return [dict(node) for node in FALLBACK_NODES]

  async def _fetch_source(self, client: httpx.AsyncClient, url: str) -> Optional[List[Dict[str, Any]]]:
    print(f"[inventory] trying {url}")
    try:
      response = await client.get(url)
      response.raise_for_status()
      data = response.json()
    except httpx.TimeoutException:
      print(f"[inventory] {url} timed out")
      return None
    except httpx.HTTPStatusError as e:
      print(f"[inventory] {url} failed with status {e.response.status_code}")
      return None
    except httpx.HTTPError as e:
      print(f"[inventory] {url} error: {e}")
      return None
    except ValueError as e:
      print(f"[inventory] {url} returned invalid JSON: {e}")
      return None
    except Exception as e:
      print(f"[inventory] {url} failed: {e!r}")
      return None

    nodes = normalize_inventory(data)
    if nodes is None:
      print(f"[inventory] {url} returned invalid data: {type(data).__name__}")
      return None
    if not nodes:
      print(f"[inventory] {url} returned no nodes with valid coordinates")
    return nodes
