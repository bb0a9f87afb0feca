VERSION = "0.3.0"

# Cloud API
API_VERSION = "12"
LOOKUP_ENDPOINT = "https://lookup.homematic.com:48335/getHost"
CLIENT_DEVICE_TYPE = "Computer"
CLIENT_LANGUAGE = "de-DE"
CLIENT_AUTH_SALT = "jiLpVitHvWnIGD1yo7MA"

STATE_PATH = "/hmip/home/getCurrentState"
CONNECTION_REQUEST_PATH = "/hmip/auth/connectionRequest"
ACKNOWLEDGE_PATH = "/hmip/auth/isRequestAcknowledged"
REQUEST_AUTH_TOKEN_PATH = "/hmip/auth/requestAuthToken"
CONFIRM_AUTH_TOKEN_PATH = "/hmip/auth/confirmAuthToken"

# Environment variables read by config.load_config()
ENV_ACCESS_POINT_SGTIN = "HMIP_AP_SGTIN"
ENV_PIN = "HMIP_PIN"
ENV_CLIENT_ID = "HMIP_CLIENT_ID"
ENV_CLIENT_NAME = "HMIP_CLIENT_NAME"
ENV_DEVICE_ID = "HMIP_DEVICE_ID"
ENV_CLIENT_AUTH_TOKEN = "HMIP_CLIENT_AUTH_TOKEN"
ENV_AUTH_TOKEN = "HMIP_AUTH_TOKEN"
ENV_LOOKUP_ENDPOINT = "HMIP_LOOKUP_ENDPOINT"

# Push event discriminators (pushEventType)
EVENT_TYPE_DEVICE_CHANGED = "DEVICE_CHANGED"
EVENT_TYPE_GROUP_CHANGED = "GROUP_CHANGED"
EVENT_TYPE_HOME_CHANGED = "HOME_CHANGED"

# Functional channel discriminators (functionalChannelType)
CHANNEL_TYPE_DEVICE_BASE = "DEVICE_BASE"
CHANNEL_TYPE_SWITCH = "SWITCH_CHANNEL"
CHANNEL_TYPE_SWITCH_MEASURING = "SWITCH_MEASURING_CHANNEL"
CHANNEL_TYPE_CLIMATE_SENSOR = "CLIMATE_SENSOR_CHANNEL"
CHANNEL_TYPE_ACCESS_CONTROLLER = "ACCESS_CONTROLLER_CHANNEL"
CHANNEL_TYPE_SMOKE_DETECTOR = "SMOKE_DETECTOR_CHANNEL"

DEVICE_TYPE_TEMPERATURE_HUMIDITY_SENSOR_OUTDOOR = "TEMPERATURE_HUMIDITY_SENSOR_OUTDOOR"
DEVICE_TYPE_PLUGABLE_SWITCH = "PLUGABLE_SWITCH"
DEVICE_TYPE_PLUGABLE_SWITCH_MEASURING = "PLUGABLE_SWITCH_MEASURING"
DEVICE_TYPE_SMOKE_DETECTOR = "SMOKE_DETECTOR"

CONNECTION_TYPE_RF = "HMIP_RF"

# Group discriminators (type)
GROUP_TYPE_META = "META"
GROUP_TYPE_ENVIRONMENT = "ENVIRONMENT"

ORIGIN_TYPE_DEVICE = "DEVICE"

# Timing (seconds)
REQUEST_TIMEOUT = 30         # per HTTP request
WEBSOCKET_HEARTBEAT = 30     # ping interval on the push-event websocket
RECONNECT_DELAY = 60 * 10    # wait before reconnecting when the websocket endpoint is unchanged
STATE_FETCH_ATTEMPTS = 2     # getCurrentState attempts, endpoints re-resolved in between
ACKNOWLEDGE_ATTEMPTS = 20    # isRequestAcknowledged polls during registration
ACKNOWLEDGE_DELAY = 3        # fixed gap between acknowledge polls
