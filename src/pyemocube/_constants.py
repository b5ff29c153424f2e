"""Internal constants shared across the library."""

DEFAULT_CAPACITY = 4
DEFAULT_TICK_INTERVAL = 1.0 / 60.0

DEFAULT_MQTT_HOST = "broker.hivemq.com"
DEFAULT_MQTT_PORT = 1883
DEFAULT_METRICS_TOPIC = "bci/emotions"
DEFAULT_LEAVE_TOPIC = "bci/leave"

CHAT_BASE_URL = "https://api.groq.com/openai/v1/chat/completions"
CHAT_MODEL = "llama-3.3-70b-versatile"
