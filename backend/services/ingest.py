"""
Ingestion of raw mesh messages into the live node registry.

Each message is run through an ordered chain of extraction strategies; the
first one that produces a node wins and the node is written to the registry.
"""

import random
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence

from config import (
  DEBUG_LAST_MAX,
  DEBUG_PAYLOAD,
  FALLBACK_LAT_MAX,
  FALLBACK_LAT_MIN,
  FALLBACK_LON_MAX,
  FALLBACK_LON_MIN,
)
from decoder import (
  TextMeta,
  _region_from_topic,
  _safe_preview,
  decode_position,
  extract_text_meta,
  valid_fix,
)
from state import LIVE_TRANSMISSION, LIVE_TRANSMISSION_FALLBACK, LiveNode, NodeRegistry

RESULT_DISCARDED = "discarded"
RESULT_ERROR = "error"


class ExtractionStrategy:
  """One way of turning a raw message into a LiveNode."""

  result = "unknown"

  def attempt(self, payload: bytes, meta: TextMeta, topic: str, now: float) -> Optional[LiveNode]:
    raise NotImplementedError


class BinaryPositionStrategy(ExtractionStrategy):
  result = "decoded_position"

  def attempt(self, payload: bytes, meta: TextMeta, topic: str, now: float) -> Optional[LiveNode]:
    fix = decode_position(payload)
    if fix is None or not valid_fix(fix.latitude, fix.longitude):
      return None
    return LiveNode(
      id=fix.node_id,
      name=meta.name,
      short_name=meta.short_name,
      firmware=meta.firmware_or_default,
      latitude=fix.latitude,
      longitude=fix.longitude,
      timestamp=now,
      topic=topic,
      region=_region_from_topic(topic),
      type=LIVE_TRANSMISSION,
      snr=fix.snr,
      rssi=fix.rssi,
      time=fix.time,
    )


class TextFallbackStrategy(ExtractionStrategy):
  """
  Placeholder position for beacons we can identify but not decode.

  Coordinates are drawn uniformly from a fixed box, so consumers must rely on
  the node type, not the position, to tell these apart from real fixes.
  """

  result = "fallback_text"

  def __init__(
    self,
    lat_range=(FALLBACK_LAT_MIN, FALLBACK_LAT_MAX),
    lon_range=(FALLBACK_LON_MIN, FALLBACK_LON_MAX),
    rng: Optional[random.Random] = None,
  ) -> None:
    self.lat_range = lat_range
    self.lon_range = lon_range
    self._rng = rng or random.Random()

  def attempt(self, payload: bytes, meta: TextMeta, topic: str, now: float) -> Optional[LiveNode]:
    if not meta.has_identity:
      return None
    return LiveNode(
      id=meta.node_id_or_default,
      name=meta.name,
      short_name=meta.short_name,
      firmware=meta.firmware_or_default,
      latitude=self._rng.uniform(*self.lat_range),
      longitude=self._rng.uniform(*self.lon_range),
      timestamp=now,
      topic=topic,
      region=_region_from_topic(topic),
      type=LIVE_TRANSMISSION_FALLBACK,
    )


def default_strategies() -> List[ExtractionStrategy]:
  return [BinaryPositionStrategy(), TextFallbackStrategy()]


class Ingestor:
  def __init__(
    self,
    registry: NodeRegistry,
    strategies: Optional[Sequence[ExtractionStrategy]] = None,
    clock: Callable[[], float] = time.time,
    debug: bool = DEBUG_PAYLOAD,
  ) -> None:
    self.registry = registry
    self.strategies = list(strategies) if strategies is not None else default_strategies()
    self._clock = clock
    self.debug = debug

    self.stats: Dict[str, Any] = {
      "received_total": 0,
      "parsed_total": 0,
      "fallback_total": 0,
      "unparsed_total": 0,
      "error_total": 0,
      "last_rx_ts": None,
      "last_rx_topic": None,
      "last_parsed_ts": None,
      "last_parsed_topic": None,
    }
    self.result_counts: Dict[str, int] = {}
    self.topic_counts: Dict[str, int] = {}
    self.debug_last: Deque[Dict[str, Any]] = deque(maxlen=DEBUG_LAST_MAX)

  def handle(self, topic: str, payload: bytes) -> str:
    """Process one message and return the result tag."""
    now = self._clock()
    self.stats["received_total"] += 1
    self.stats["last_rx_ts"] = now
    self.stats["last_rx_topic"] = topic
    self.topic_counts[topic] = self.topic_counts.get(topic, 0) + 1

    node: Optional[LiveNode] = None
    result = RESULT_DISCARDED
    error: Optional[str] = None
    try:
      # Name and firmware only ever appear in the text framing
      meta = extract_text_meta(payload)
      for strategy in self.strategies:
        node = strategy.attempt(payload, meta, topic, now)
        if node is not None:
          result = strategy.result
          break
      if node is not None:
        self.registry.upsert(node.id, node)
    except Exception as exc:
      node = None
      result = RESULT_ERROR
      error = repr(exc)
      print(f"[ingest] failed topic={topic} error={error}")

    self.result_counts[result] = self.result_counts.get(result, 0) + 1
    if result == RESULT_ERROR:
      self.stats["error_total"] += 1
    elif node is None:
      self.stats["unparsed_total"] += 1
    else:
      self.stats["parsed_total"] += 1
      self.stats["last_parsed_ts"] = now
      self.stats["last_parsed_topic"] = topic
      if node.type == LIVE_TRANSMISSION_FALLBACK:
        self.stats["fallback_total"] += 1

    self.debug_last.append({
      "ts": now,
      "topic": topic,
      "result": result,
      "node_id": node.id if node else None,
      "error": error,
      "payload_preview": _safe_preview(payload),
    })

    if self.debug and node is not None:
      print(
        f"[ingest] {result} topic={topic} node={node.name} ({node.id}) "
        f"lat={node.latitude:.4f} lon={node.longitude:.4f}"
      )
    return result
