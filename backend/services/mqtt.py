"""
MQTT service for subscribing to mesh network topics and feeding the ingestor.
"""

from typing import List, Optional

import paho.mqtt.client as mqtt

from config import (
  MQTT_CA_CERT,
  MQTT_CLIENT_ID,
  MQTT_HOST,
  MQTT_PASSWORD,
  MQTT_PORT,
  MQTT_TLS,
  MQTT_TLS_INSECURE,
  MQTT_TOPICS,
  MQTT_TRANSPORT,
  MQTT_USERNAME,
  MQTT_WS_PATH,
)
from services.ingest import Ingestor


class MeshSubscriber:
  """Owns the broker connection; paho handles reconnects on its own thread."""

  def __init__(self, ingestor: Ingestor, topics: Optional[List[str]] = None) -> None:
    self.ingestor = ingestor
    self.topics = list(topics) if topics is not None else list(MQTT_TOPICS)
    self.client: Optional[mqtt.Client] = None

  @property
  def connected(self) -> bool:
    return self.client is not None and self.client.is_connected()

  def on_connect(self, client, userdata, flags, reason_code, properties=None):
    """Handle MQTT connection."""
    topics_str = ", ".join(self.topics)
    print(f"[mqtt] connected reason_code={reason_code} subscribing topics={topics_str}")
    for topic in self.topics:
      client.subscribe(topic, qos=0)

  def on_disconnect(self, client, userdata, reason_code, properties=None, *args, **kwargs):
    """Handle MQTT disconnection."""
    print(f"[mqtt] disconnected reason_code={reason_code}")

  def on_message(self, client, userdata, msg: mqtt.MQTTMessage):
    """Handle incoming MQTT messages."""
    try:
      topic = msg.topic
    except UnicodeDecodeError as exc:
      print(f"[mqtt] dropping message with undecodable topic: {exc}")
      return
    self.ingestor.handle(topic, msg.payload)

  def start(self) -> mqtt.Client:
    """Create, configure and connect the MQTT client."""
    transport = "websockets" if MQTT_TRANSPORT == "websockets" else "tcp"
    topics_str = ", ".join(self.topics)
    print(
      f"[mqtt] connecting host={MQTT_HOST} port={MQTT_PORT} tls={MQTT_TLS} "
      f"transport={transport} ws_path={MQTT_WS_PATH if transport == 'websockets' else '-'} topics={topics_str}"
    )

    client = mqtt.Client(
      mqtt.CallbackAPIVersion.VERSION2,
      client_id=MQTT_CLIENT_ID,
      transport=transport,
    )

    if transport == "websockets":
      client.ws_set_options(path=MQTT_WS_PATH)

    if MQTT_USERNAME:
      client.username_pw_set(MQTT_USERNAME, MQTT_PASSWORD)

    if MQTT_TLS:
      if MQTT_CA_CERT:
        client.tls_set(ca_certs=MQTT_CA_CERT)
      else:
        client.tls_set()
      if MQTT_TLS_INSECURE:
        client.tls_insecure_set(True)

    client.on_connect = self.on_connect
    client.on_disconnect = self.on_disconnect
    client.on_message = self.on_message

    client.reconnect_delay_set(min_delay=1, max_delay=30)
    client.connect_async(MQTT_HOST, MQTT_PORT, keepalive=30)
    client.loop_start()

    self.client = client
    return client

  def stop(self) -> None:
    """Stop the MQTT client."""
    if self.client is None:
      return
    try:
      self.client.loop_stop()
      self.client.disconnect()
    except Exception as exc:
      print(f"[mqtt] error during shutdown: {exc}")
    self.client = None
