import os
import time

# =========================
# Env / Config
# =========================
MQTT_ENABLED = os.getenv("MQTT_ENABLED", "true").lower() == "true"
MQTT_HOST = os.getenv("MQTT_HOST", "mqtt.meshtastic.org")
MQTT_PORT = int(os.getenv("MQTT_PORT", "1883"))
MQTT_USERNAME = os.getenv("MQTT_USERNAME", "meshdev")
MQTT_PASSWORD = os.getenv("MQTT_PASSWORD", "large4cats")

MQTT_TOPIC = os.getenv("MQTT_TOPIC", "msh/US/#")
MQTT_TOPICS = [t.strip() for t in MQTT_TOPIC.split(",") if t.strip()]

MQTT_TLS = os.getenv("MQTT_TLS", "false").lower() == "true"
MQTT_TLS_INSECURE = os.getenv("MQTT_TLS_INSECURE", "false").lower() == "true"
MQTT_CA_CERT = os.getenv("MQTT_CA_CERT", "")  # optional path to CA bundle

MQTT_TRANSPORT = os.getenv("MQTT_TRANSPORT", "tcp").strip().lower()  # tcp | websockets
MQTT_WS_PATH = os.getenv("MQTT_WS_PATH", "/mqtt")

MQTT_CLIENT_ID = os.getenv("MQTT_CLIENT_ID", "") or f"meshmap_live_{int(time.time() * 1000)}"

NODE_TTL_SECONDS = int(os.getenv("NODE_TTL_SECONDS", "600"))

# Synthetic coordinates for text-only beacons (roughly the continental US)
try:
  FALLBACK_LAT_MIN = float(os.getenv("FALLBACK_LAT_MIN", "25"))
  FALLBACK_LAT_MAX = float(os.getenv("FALLBACK_LAT_MAX", "50"))
except ValueError:
  FALLBACK_LAT_MIN, FALLBACK_LAT_MAX = 25.0, 50.0
try:
  FALLBACK_LON_MIN = float(os.getenv("FALLBACK_LON_MIN", "-125"))
  FALLBACK_LON_MAX = float(os.getenv("FALLBACK_LON_MAX", "-75"))
except ValueError:
  FALLBACK_LON_MIN, FALLBACK_LON_MAX = -125.0, -75.0

INVENTORY_SOURCES = [
  s.strip()
  for s in os.getenv(
    "INVENTORY_SOURCES",
    "https://meshmap.net/nodes.json,"
    "https://meshtastic.liamcottle.net/api/nodes,"
    "https://api.meshtastic.org/nodes",
  ).split(",")
  if s.strip()
]
try:
  INVENTORY_TIMEOUT_SECONDS = float(os.getenv("INVENTORY_TIMEOUT_SECONDS", "10"))
except ValueError:
  INVENTORY_TIMEOUT_SECONDS = 10.0
if INVENTORY_TIMEOUT_SECONDS <= 0:
  INVENTORY_TIMEOUT_SECONDS = 10.0
INVENTORY_USER_AGENT = os.getenv("INVENTORY_USER_AGENT", "Multiverse-MeshMap/1.0")

DEBUG_PAYLOAD = os.getenv("DEBUG_PAYLOAD", "false").lower() == "true"
DEBUG_LAST_MAX = int(os.getenv("DEBUG_LAST_MAX", "50"))
PAYLOAD_PREVIEW_MAX = int(os.getenv("PAYLOAD_PREVIEW_MAX", "200"))

PROD_MODE = os.getenv("PROD_MODE", "false").lower() == "true"

CORS_ORIGINS = [s.strip() for s in os.getenv("CORS_ORIGINS", "*").split(",") if s.strip()]

APP_DIR = os.path.dirname(os.path.abspath(__file__))
STATIC_DIR = os.getenv("STATIC_DIR", os.path.join(APP_DIR, "public"))

SERVICE_NAME = os.getenv("SERVICE_NAME", "Multiverse MeshMap Backend")
