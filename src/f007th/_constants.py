"""Internal constants shared across the package."""

SENSOR_TYPE = "F007TH"

SEND_DATA_BUFFER_SIZE = 2048
SERVER_RESPONSE_BUFFER_SIZE = 4096

DEFAULT_GPIO = 27
MIN_GPIO = 1
MAX_GPIO = 53
DEFAULT_LOG_FILE = "f007th-send.log"
DEFAULT_STATISTICS_INTERVAL_MS = 1000

DEFAULT_MQTT_HOST = "localhost"
DEFAULT_MQTT_PORT = 1883
DEFAULT_MQTT_KEEPALIVE = 60
