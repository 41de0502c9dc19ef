import paho.mqtt.client as mqtt

from services.ingest import Ingestor
from services.mqtt import MeshSubscriber

TOPIC = "msh/US/2/e/LongFast/!a1b2c3d4"


class RecordingClient:
  def __init__(self, connected=True):
    self.subscriptions = []
    self._connected = connected

  def subscribe(self, topic, qos=0):
    self.subscriptions.append((topic, qos))

  def is_connected(self):
    return self._connected


def _message(topic: bytes, payload: bytes) -> mqtt.MQTTMessage:
  msg = mqtt.MQTTMessage(topic=topic)
  msg.payload = payload
  return msg


def test_on_connect_subscribes_every_topic(registry):
  subscriber = MeshSubscriber(Ingestor(registry), topics=["msh/US/#", "msh/EU_868/#"])
  client = RecordingClient()

  subscriber.on_connect(client, None, {}, 0)

  assert client.subscriptions == [("msh/US/#", 0), ("msh/EU_868/#", 0)]


def test_on_message_feeds_the_ingestor(registry, clock, make_envelope):
  subscriber = MeshSubscriber(Ingestor(registry, clock=clock), topics=["msh/US/#"])
  payload = make_envelope(0x1A2B3C4D, latitude_i=377749000, longitude_i=-1224194000)

  subscriber.on_message(None, None, _message(TOPIC.encode(), payload))
  subscriber.on_message(None, None, _message(TOPIC.encode(), b"NODE-ONE NO1 !deadbeef"))

  assert {node.id for node in registry.snapshot()} == {"1a2b3c4d", "deadbeef"}


def test_undecodable_topic_is_dropped(registry, clock):
  ingestor = Ingestor(registry, clock=clock)
  subscriber = MeshSubscriber(ingestor, topics=["msh/US/#"])

  subscriber.on_message(None, None, _message(b"msh/\xff\xfe/bad", b"NODE-ONE NO1 !deadbeef"))

  assert len(registry) == 0
  assert ingestor.stats["received_total"] == 0


def test_connected_reflects_client_state(registry):
  subscriber = MeshSubscriber(Ingestor(registry), topics=["msh/US/#"])
  assert subscriber.connected is False

  subscriber.client = RecordingClient(connected=True)
  assert subscriber.connected is True

  subscriber.client = RecordingClient(connected=False)
  assert subscriber.connected is False
