"""Canonical logging field names for capability invocation records.

These constants define a stable key set for structured logs and context
propagation so binder, resolver, dispatcher, and signer emit the same shape.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Capability fields.
CAPABILITY = "capability"
SHAPE = "shape"
COMPONENT = "component"
ATTRIBUTE = "attribute"
OUTPUT_TYPE = "output_type"

# Endpoint and wire fields.
URL = "url"
METHOD = "method"
AUTH_MODE = "auth_mode"
REGION = "region"
STATUS_CODE = "status_code"

# Invocation lifecycle fields.
INVOCATION_EVENT = "capability_invocation"
COMPLETION_EVENT = "capability_completion"
BINDING_EVENT = "capability_binding"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERROR_KIND = "error_kind"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
