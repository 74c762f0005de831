"""Protocol constants for the tinyget client.

Centralizes wire-level values shared by the request, response, and
redirect modules.
"""

# URL schemes
SECURE_SCHEME_PREFIX = "https://"
SCHEME_DELIMITER = "://"

# Default ports appended when the URL names none
DEFAULT_HTTP_PORT = 80
DEFAULT_HTTPS_PORT = 443

# Request serialization
HTTP_VERSION = "HTTP/1.1"
CRLF = "\r\n"

# Redirect handling
REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307})
DEFAULT_MAX_REDIRECTS = 100

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192

# Longest status or header line accepted from a server
MAX_LINE_BYTES = 64 * 1024

# Environment variable holding the default timeout in seconds
TIMEOUT_ENV_VAR = "TINYGET_TIMEOUT"
