"""HTTP constants for the request pipeline.

Centralizes status codes, limits and header names shared across modules.
"""

# HTTP Status Codes
HTTP_STATUS_SWITCHING_PROTOCOLS = 101
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_CREATED = 201
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_METHOD_NOT_ALLOWED = 405
HTTP_STATUS_NOT_ACCEPTABLE = 406
HTTP_STATUS_CONFLICT = 409
HTTP_STATUS_UNSUPPORTED_MEDIA_TYPE = 415
HTTP_STATUS_UNPROCESSABLE_ENTITY = 422
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_INTERNAL_SERVER_ERROR = 500
HTTP_STATUS_SERVICE_UNAVAILABLE = 503
HTTP_STATUS_GATEWAY_TIMEOUT = 504

# Retry loop
DEFAULT_MAX_ATTEMPTS = 10
MAX_RETRY_AFTER_SECONDS = 60.0
CONNECTION_RESET_RETRY_AFTER = "1"

# Bytes drained from a discarded response so the connection can be reused
MAX_BODY_DRAIN_BYTES = 2 << 10

# Bytes of an error body kept for diagnostics
MAX_UNSTRUCTURED_RESPONSE_TEXT_BYTES = 2048

# Header names
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_CONTENT_LENGTH = "Content-Length"
HEADER_RETRY_AFTER = "Retry-After"

# Reserved query parameter carrying the configured timeout
TIMEOUT_PARAM = "timeout"

# Media types understood by the default decoder
MEDIA_TYPE_JSON = "application/json"
MEDIA_TYPE_YAML = "application/yaml"
MEDIA_TYPE_XML = "application/xml"
MEDIA_TYPE_TEXT_XML = "text/xml"
