"""Constants for the Shelly PV integration."""

DOMAIN = "shelly_pv"

# Config entry keys
CONF_SERVER_URI = "server_uri"
CONF_AUTH_KEY = "auth_key"
CONF_DEVICES = "devices"
CONF_CHANNEL = "ch"

DEFAULT_CHANNEL = 0

REQUEST_TIMEOUT = 10  # seconds, per HTTP attempt
RATE_LIMIT_RETRY_DELAY = 11  # seconds to wait after a 429 before retrying
MAX_RATE_LIMIT_RETRIES = 1
PACING_INTERVAL = 3  # seconds between two consecutive devices
INITIAL_POLL_DELAY = 15  # seconds after setup before the first deferred poll

HTTP_TOO_MANY_REQUESTS = 429

# Status payload keys, in the order they are checked
KEY_RELAYS = "relays"
KEY_METERS = "meters"
KEY_PM1 = "pm1:0"
KEY_SWITCH = "switch:0"
KEY_LIGHTS = "lights"
KEY_EM = "em:0"

STATUS_CLASS_ON = "on"
STATUS_CLASS_OFF = "off"

EVENT_STATUS_UPDATE = f"{DOMAIN}_status_update"

SERVICE_REFRESH = "refresh"
