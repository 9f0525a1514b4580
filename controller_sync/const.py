from __future__ import annotations

API_PREFIX = "/nifi-api/controller-services"

# Option keys accepted by ControllerSyncConfig.from_options
CONF_BASE_URL = "base_url"
CONF_ACCESS_TOKEN = "access_token"
CONF_VERIFY_SSL = "verify_ssl"
CONF_REQUEST_TIMEOUT = "request_timeout"
CONF_MAX_RETRIES = "max_retries"
CONF_SETTLE_DELAY = "settle_delay"
CONF_BACKOFF_DELAY = "backoff_delay"
CONF_POLL_INTERVAL = "poll_interval"
CONF_POLL_MAX_ATTEMPTS = "poll_max_attempts"
CONF_NOT_FOUND_GRACE = "not_found_grace"

DEFAULT_REQUEST_TIMEOUT = 30.0
# Three conflict-triggered retries after the initial attempt
DEFAULT_MAX_RETRIES = 3
# Seconds, multiplied by the attempt number
DEFAULT_SETTLE_DELAY = 0.1
DEFAULT_BACKOFF_DELAY = 0.5
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_POLL_MAX_ATTEMPTS = 30
DEFAULT_NOT_FOUND_GRACE = 0.5

DEFAULT_BULLETIN_LEVEL = "WARN"
BULLETIN_LEVEL_NONE = "NONE"
BULLETIN_LEVELS = ("WARN", "INFO", "DEBUG", "ERROR", "NONE")

STATE_ENABLED = "ENABLED"
STATE_DISABLED = "DISABLED"
RUN_STATES = (STATE_ENABLED, STATE_DISABLED)

# Descriptors with this prefix belong to the framework and are never sent back
FRAMEWORK_PROPERTY_PREFIX = "nifi."

STATUS_COMPLETE = "COMPLETE"

UPDATE_FAILED_MESSAGE = "Failed to update controller service"
VERIFY_FAILED_MESSAGE = "Failed to verify controller service"
NO_ISSUES_MESSAGE = "Verification completed with no issues."
