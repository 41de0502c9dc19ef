import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from google.protobuf.message import DecodeError
from meshtastic.protobuf import mesh_pb2, mqtt_pb2, portnums_pb2

from config import PAYLOAD_PREVIEW_MAX

COORD_SCALE = 1e7

DEFAULT_NAME = "Unknown"
DEFAULT_SHORT_NAME = "UNK"
DEFAULT_NODE_ID = "unknown"
DEFAULT_FIRMWARE = "unknown"

# e.g. "NODE-ONE NO1"
RE_NAME_PAIR = re.compile(r"([A-Z0-9-]{3,})\s+([A-Z0-9-]{2,})")
# e.g. "!deadbeef"
RE_NODE_ID = re.compile(r"!([a-f0-9]{8})")
# e.g. "2.5.6.abc1234"
RE_FIRMWARE = re.compile(r"(\d+\.\d+\.\d+\.[a-f0-9]+)")


@dataclass
class PositionFix:
  node_id: str
  latitude: float
  longitude: float
  snr: Optional[float] = None
  rssi: Optional[int] = None
  time: Optional[int] = None
  channel_id: Optional[str] = None
  gateway_id: Optional[str] = None


@dataclass
class TextMeta:
  name_pair: Optional[Tuple[str, str]] = None
  node_id: Optional[str] = None
  firmware: Optional[str] = None

  @property
  def name(self) -> str:
    return self.name_pair[0] if self.name_pair else DEFAULT_NAME

  @property
  def short_name(self) -> str:
    return self.name_pair[1] if self.name_pair else DEFAULT_SHORT_NAME

  @property
  def node_id_or_default(self) -> str:
    return self.node_id or DEFAULT_NODE_ID

  @property
  def firmware_or_default(self) -> str:
    return self.firmware or DEFAULT_FIRMWARE

  @property
  def has_identity(self) -> bool:
    """True when both a name pair and a node id were found."""
    return self.name_pair is not None and self.node_id is not None


def _valid_lat_lon(lat: float, lon: float) -> bool:
  return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def valid_fix(lat: Any, lon: Any) -> bool:
  """In range, and zero on either axis means the radio had no fix."""
  try:
    latf = float(lat)
    lonf = float(lon)
  except (TypeError, ValueError):
    return False
  if latf == 0 or lonf == 0:
    return False
  return _valid_lat_lon(latf, lonf)


def _safe_preview(data: bytes) -> str:
  try:
    text = data.decode("utf-8", errors="replace")
  except Exception:
    text = repr(data)
  if len(text) > PAYLOAD_PREVIEW_MAX:
    return text[:PAYLOAD_PREVIEW_MAX] + "..."
  return text


def _region_from_topic(topic: str) -> Optional[str]:
  parts = topic.split("/")
  if len(parts) >= 2 and parts[1]:
    return parts[1]
  return None


# =========================
# Parsing: Meshtastic ServiceEnvelope
# =========================

def decode_position(payload: bytes) -> Optional[PositionFix]:
  """
  Decode a ServiceEnvelope carrying a POSITION_APP packet.

  Returns None for anything else: bytes that are not an envelope, packets
  without a decoded Data payload (encrypted), other port numbers, or a
  position payload that does not parse. Coordinates are not validated here.
  """
  envelope = mqtt_pb2.ServiceEnvelope()
  try:
    envelope.ParseFromString(payload)
  except DecodeError:
    return None
  if not envelope.HasField("packet"):
    return None

  packet = envelope.packet
  if not packet.HasField("decoded"):
    return None
  if packet.decoded.portnum != portnums_pb2.POSITION_APP:
    return None

  position = mesh_pb2.Position()
  try:
    position.ParseFromString(packet.decoded.payload)
  except DecodeError:
    return None

  sender = getattr(packet, "from")
  return PositionFix(
    node_id=f"{sender:08x}",
    latitude=position.latitude_i / COORD_SCALE,
    longitude=position.longitude_i / COORD_SCALE,
    snr=packet.rx_snr or None,
    rssi=packet.rx_rssi or None,
    time=position.time or None,
    channel_id=envelope.channel_id or None,
    gateway_id=envelope.gateway_id or None,
  )


# =========================
# Parsing: text framing around the packet
# =========================

def extract_text_meta(payload: bytes) -> TextMeta:
  """
  Best-effort scan of the raw bytes for node name, id and firmware.

  Each pattern is matched independently; missing ones stay None and fall
  back to the defaults exposed by TextMeta.
  """
  text = payload.decode("utf-8", errors="replace")
  meta = TextMeta()

  m = RE_NAME_PAIR.search(text)
  if m:
    meta.name_pair = (m.group(1), m.group(2))
  m = RE_NODE_ID.search(text)
  if m:
    meta.node_id = m.group(1)
  m = RE_FIRMWARE.search(text)
  if m:
    meta.firmware = m.group(1)
  return meta
