"""
Constants for Elgato Key Light discovery and control
"""

# Device REST endpoint
DEFAULT_PORT = 9123
LIGHTS_PATH = "/elgato/lights"

# mDNS service advertised by Key Lights
SERVICE_TYPE = "_elg._tcp.local."
DISCOVERY_TIMEOUT = 5
RESOLVE_TIMEOUT_MS = 3000

# Device HTTP timeouts (seconds)
REQUEST_TIMEOUT = 5
CONNECT_TIMEOUT = 2

# Brightness domain (percent)
MIN_BRIGHTNESS = 0
MAX_BRIGHTNESS = 100
BRIGHTNESS_STEP = 5

# Color temperature domain (mireds)
COLD_TEMPERATURE = 143  # 7000K
WARM_TEMPERATURE = 344  # 2900K
TEMPERATURE_STEP = (WARM_TEMPERATURE - COLD_TEMPERATURE) / 20  # 5%

# Partial discovery policies
PARTIAL_ACCEPT = "accept"
PARTIAL_FAIL = "fail"
PARTIAL_POLICIES = (PARTIAL_ACCEPT, PARTIAL_FAIL)
