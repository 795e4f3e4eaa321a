"""
Bus identifiers and defaults for the Kopzinski service.

Service and client must agree on these exactly.
"""

# ==============================================================================
# BUS IDENTIFIERS
# ==============================================================================

SERVICE_NAME = "com.kopzinski.TestService"
OBJECT_PATH = "/com/kopzinski/TestService"
INTERFACE_NAME = "com.kopzinski.KopzinskiInterface"

# Environment variable selecting the system bus endpoint
BUS_ADDRESS_ENV = "DBUS_SYSTEM_BUS_ADDRESS"


# ==============================================================================
# SERVICE STATE DEFAULTS
# ==============================================================================

DEFAULT_VERSION = "1.0.0"
DEFAULT_STATUS = "active"
DEFAULT_MESSAGE = "Hello from Kopzinski!"
DEFAULT_COUNTER = 0

STARTUP_MESSAGE = "Service started successfully!"

# Counter is marshalled as D-Bus int32
INT32_MAX = 2**31 - 1


# ==============================================================================
# PROBE DEFAULTS (seconds)
# ==============================================================================

DEFAULT_STARTUP_SIGNAL_DELAY = 1.0
DEFAULT_SIGNAL_TRIGGER_DELAY = 1.0
DEFAULT_OBSERVATION_WINDOW = 3.0

PROBE_MESSAGE = "Hello from Python client!"
PROBE_SIGNAL_MESSAGE = "Testing signals!"
PROBE_INCREMENTS = 3
PROBE_SIGNAL_INCREMENTS = 2


# ==============================================================================
# MEMBER SIGNATURES (for startup banner and docs)
# ==============================================================================

METHOD_SIGNATURES = (
    "GetStatus() -> string",
    "SetMessage(message) -> boolean",
    "GetMessage() -> string",
    "IncrementCounter() -> int32",
    "GetCounter() -> int32",
    "ResetCounter() -> int32",
)
PROPERTY_SIGNATURES = ("Version (read-only) -> string",)
SIGNAL_SIGNATURES = (
    "MessageChanged(newMessage)",
    "CounterChanged(newValue)",
)
