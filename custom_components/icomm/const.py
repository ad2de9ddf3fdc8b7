"""Constants for the iCOMM water heater integration.

This module contains all the constants used throughout the integration,
including API endpoints, configuration keys, attribute names and the
GraphQL documents sent to the iCOMM cloud.
"""

DOMAIN = "icomm"

BASE_URL = "https://r2.wh8.co"
GRAPHQL_URL = f"{BASE_URL}/graphql"
APP_VERSION = "13.0.2"
USER_AGENT = "okhttp/4.9.2"

BRAND_AOSMITH = "aosmith"
BRAND_STATE = "state"
BRANDS = {
    BRAND_AOSMITH: "A.O. Smith",
    BRAND_STATE: "State",
}

CONF_BRAND = "brand"

DEFAULT_SCAN_INTERVAL = 300
SCAN_INTERVAL_OPTIONS = [15, 30, 60, 300, 600, 900, 1800, 3600, 10800, 0]

REQUEST_TIMEOUT = 10.0
RETRY_DELAY = 5  # Seconds before a timed out or re-authenticated request is retried
LOGIN_WAIT_DELAY = 5  # Seconds refresh waits for a login to complete
PENDING_REFRESH_DELAY = 5
COMMAND_REFRESH_DELAY = 5

COMPATIBLE_DEVICE_TYPES = ("NextGenHeatPump", "RE3Connected")

UNAUTHORIZED_ERROR = "UNAUTHORIZED_ERROR"

MIN_TEMPERATURE = 95
MIN_DAYS = 1
MAX_DAYS = 100
CONTROLS_SELECT_DAYS = "SELECT_DAYS"

ERROR_INVALID_AUTH = "invalid_auth"
ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_TIMEOUT = "timeout_error"
ERROR_API_ERROR = "api_error"
ERROR_UNKNOWN = "unknown_error"

ACCOUNT_ENTITY_ID = "account"

ATTR_STATUS = "Status"
ATTR_NAME = "name"
ATTR_BRAND = "Brand"
ATTR_MODEL = "Model"
ATTR_DEVICE_TYPE = "Device Type"
ATTR_DSN = "DSN"
ATTR_SERIAL_NUMBER = "Serial Number"
ATTR_INSTALL_LOCATION = "Install Location"
ATTR_MODE = "Mode"
ATTR_FIRMWARE_VERSION = "Firmware Version"
ATTR_ONLINE = "Online"
ATTR_THERMOSTAT_SETPOINT = "thermostatSetpoint"
ATTR_HEATING_SETPOINT = "heatingSetpoint"
ATTR_MAXIMUM_TEMPERATURE = "Maximum Temperature"
ATTR_PREVIOUS_TEMPERATURE = "Previous Temperature"
ATTR_LEVEL = "level"

ATTR_DAYS = "days"
SERVICE_SET_MODE = "set_mode"

STATUS_CONNECTED = "Connected"
STATUS_LOGIN_SUCCESSFUL = "Login successful"
STATUS_LOGIN_FAILED = "Login failed"
STATUS_NO_DEVICES = "No compatible water heaters found"
STATUS_MISSING_CREDENTIALS = "Missing account email or password"

HOT_WATER_LEVELS = {
    "LOW": 0,
    "MEDIUM": 50,
    "HIGH": 100,
}
DEFAULT_WATER_LEVEL = 100

LOGIN_QUERY = """
query login($passcode: String)
{
    login(passcode: $passcode)
    {
        user
        {
            tokens
            {
                accessToken
                idToken
                refreshToken
            }
        }
    }
}
"""

GET_DEVICES_QUERY = """
query devices($forceUpdate: Boolean, $junctionIds: [String]) {
    devices(forceUpdate: $forceUpdate, junctionIds: $junctionIds) {
        brand
        model
        deviceType
        dsn
        junctionId
        name
        serial
        install {
            location
        }
        data {
            __typename
            temperatureSetpoint
            temperatureSetpointPending
            temperatureSetpointPrevious
            temperatureSetpointMaximum
            modes {
                mode
                controls
            }
            isOnline
            ... on NextGenHeatPump {
                firmwareVersion
                hotWaterStatus
                mode
                modePending
            }
            ... on RE3Connected {
                firmwareVersion
                hotWaterStatus
                mode
                modePending
            }
        }
    }
}
"""

UPDATE_MODE_MUTATION = (
    "mutation updateMode($junctionId: String!, $mode: ModeInput!) "
    "{ updateMode(junctionId: $junctionId, mode: $mode) }"
)
UPDATE_SETPOINT_MUTATION = (
    "mutation updateSetpoint($junctionId: String!, $value: Int!) "
    "{ updateSetpoint(junctionId: $junctionId, value: $value) }"
)
