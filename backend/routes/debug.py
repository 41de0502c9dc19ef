"""
Debug routes for development/troubleshooting.
"""

import time

from fastapi import APIRouter, HTTPException, Request

from config import NODE_TTL_SECONDS, PROD_MODE

router = APIRouter()


@router.get("/stats")
def get_stats(request: Request):
  """Return message statistics and counters."""
  ingestor = request.app.state.ingestor
  stats = ingestor.stats
  if PROD_MODE:
    return {
      "stats": {
        "received_total": stats.get("received_total"),
        "parsed_total": stats.get("parsed_total"),
        "unparsed_total": stats.get("unparsed_total"),
        "last_rx_ts": stats.get("last_rx_ts"),
        "last_parsed_ts": stats.get("last_parsed_ts"),
      },
      "result_counts": dict(ingestor.result_counts),
      "live_nodes": len(request.app.state.registry),
      "server_time": time.time(),
    }

  top_topics = sorted(ingestor.topic_counts.items(), key=lambda kv: kv[1], reverse=True)[:20]
  return {
    "stats": dict(stats),
    "result_counts": dict(ingestor.result_counts),
    "live_nodes": len(request.app.state.registry),
    "node_ttl_seconds": NODE_TTL_SECONDS,
    "strategies": [strategy.result for strategy in ingestor.strategies],
    "top_topics": top_topics,
    "server_time": time.time(),
  }


@router.get("/debug/last")
def debug_last_entries(request: Request):
  """Return recent MQTT message debug entries."""
  if PROD_MODE:
    raise HTTPException(status_code=404, detail="not_found")
  debug_last = request.app.state.ingestor.debug_last
  return {
    "count": len(debug_last),
    "items": list(reversed(list(debug_last))),
    "server_time": time.time(),
  }
