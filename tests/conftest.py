from typing import Optional

import pytest
from meshtastic.protobuf import mesh_pb2, mqtt_pb2, portnums_pb2

from state import NodeRegistry


class FakeClock:
  def __init__(self, now: float = 1_700_000_000.0) -> None:
    self.now = now

  def __call__(self) -> float:
    return self.now

  def advance(self, seconds: float) -> None:
    self.now += seconds


def build_envelope(
  sender: int,
  latitude_i: int = 0,
  longitude_i: int = 0,
  portnum: int = portnums_pb2.POSITION_APP,
  rx_snr: float = 0.0,
  rx_rssi: int = 0,
  fix_time: int = 0,
  channel_id: str = "LongFast",
  gateway_id: str = "",
  payload: Optional[bytes] = None,
) -> bytes:
  """Serialize a ServiceEnvelope the way a gateway publishes it."""
  if payload is None:
    position = mesh_pb2.Position(latitude_i=latitude_i, longitude_i=longitude_i, time=fix_time)
    payload = position.SerializeToString()
  packet = mesh_pb2.MeshPacket(rx_snr=rx_snr, rx_rssi=rx_rssi)
  setattr(packet, "from", sender)
  packet.decoded.portnum = portnum
  packet.decoded.payload = payload
  envelope = mqtt_pb2.ServiceEnvelope(channel_id=channel_id, gateway_id=gateway_id)
  envelope.packet.CopyFrom(packet)
  return envelope.SerializeToString()


@pytest.fixture
def clock():
  return FakeClock()


@pytest.fixture
def registry(clock):
  return NodeRegistry(ttl_seconds=600, clock=clock)


@pytest.fixture
def make_envelope():
  return build_envelope
