import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import config

LIVE_TRANSMISSION = "live_transmission"
LIVE_TRANSMISSION_FALLBACK = "live_transmission_fallback"


@dataclass
class LiveNode:
  id: str
  name: str
  short_name: str
  firmware: str
  latitude: float
  longitude: float
  timestamp: float
  topic: str
  region: Optional[str]
  type: str
  snr: Optional[float] = None
  rssi: Optional[int] = None
  time: Optional[int] = None

  def to_payload(self) -> Dict[str, Any]:
    """Wire shape served by the live node endpoint."""
    payload: Dict[str, Any] = {
      "id": self.id,
      "name": self.name,
      "shortName": self.short_name,
      "firmware": self.firmware,
      "latitude": self.latitude,
      "longitude": self.longitude,
      "timestamp": int(self.timestamp * 1000),
      "topic": self.topic,
      "region": self.region,
      "type": self.type,
    }
    if self.type == LIVE_TRANSMISSION:
      payload["snr"] = self.snr
      payload["rssi"] = self.rssi
      payload["time"] = self.time
    return payload


class NodeRegistry:
  """
  Nodes heard recently, keyed by node id.

  Entries are overwritten whole on every upsert. Stale entries are only
  evicted when a snapshot is taken, so the map may hold expired nodes
  between reads but never returns them.
  """

  def __init__(
    self,
    ttl_seconds: float = config.NODE_TTL_SECONDS,
    clock: Callable[[], float] = time.time,
  ) -> None:
    self.ttl_seconds = ttl_seconds
    self._clock = clock
    self._nodes: Dict[str, LiveNode] = {}
    self._lock = threading.Lock()

  def upsert(self, node_id: str, node: LiveNode) -> None:
    with self._lock:
      self._nodes[node_id] = node

  def snapshot(self) -> List[LiveNode]:
    with self._lock:
      cutoff = self._clock() - self.ttl_seconds
      stale = [node_id for node_id, node in self._nodes.items() if node.timestamp < cutoff]
      for node_id in stale:
        del self._nodes[node_id]
      return list(self._nodes.values())

  def __len__(self) -> int:
    with self._lock:
      return len(self._nodes)
