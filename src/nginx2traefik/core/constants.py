"""Constants: annotation vocabulary, API versions, defaults."""

NGINX_PREFIX = "nginx.ingress.kubernetes.io/"
CERT_MANAGER_PREFIX = "cert-manager.io/"

# NGINX ingress controller annotations
AUTH_TYPE = NGINX_PREFIX + "auth-type"
AUTH_SECRET = NGINX_PREFIX + "auth-secret"  # nosec
AUTH_REALM = NGINX_PREFIX + "auth-realm"
AUTH_URL = NGINX_PREFIX + "auth-url"
AUTH_TLS_VERIFY_CLIENT = NGINX_PREFIX + "auth-tls-verify-client"
AUTH_TLS_SECRET = NGINX_PREFIX + "auth-tls-secret"  # nosec
PROXY_BODY_SIZE = NGINX_PREFIX + "proxy-body-size"
CONFIGURATION_SNIPPET = NGINX_PREFIX + "configuration-snippet"
SERVER_SNIPPET = NGINX_PREFIX + "server-snippet"
ENABLE_CORS = NGINX_PREFIX + "enable-cors"
CORS_ALLOW_ORIGIN = NGINX_PREFIX + "cors-allow-origin"
CORS_ALLOW_METHODS = NGINX_PREFIX + "cors-allow-methods"
CORS_ALLOW_HEADERS = NGINX_PREFIX + "cors-allow-headers"
CORS_ALLOW_CREDENTIALS = NGINX_PREFIX + "cors-allow-credentials"
CORS_MAX_AGE = NGINX_PREFIX + "cors-max-age"
CORS_EXPOSE_HEADERS = NGINX_PREFIX + "cors-expose-headers"
PROXY_BUFFERING = NGINX_PREFIX + "proxy-buffering"
PROXY_BUFFER_SIZE = NGINX_PREFIX + "proxy-buffer-size"
SERVICE_UPSTREAM = NGINX_PREFIX + "service-upstream"
ENABLE_OPENTRACING = NGINX_PREFIX + "enable-opentracing"
ENABLE_OPENTELEMETRY = NGINX_PREFIX + "enable-opentelemetry"
BACKEND_PROTOCOL = NGINX_PREFIX + "backend-protocol"
GRPC_BACKEND = NGINX_PREFIX + "grpc-backend"
LIMIT_CONNECTIONS = NGINX_PREFIX + "limit-connections"
LIMIT_RPS = NGINX_PREFIX + "limit-rps"
LIMIT_RPM = NGINX_PREFIX + "limit-rpm"
LIMIT_BURST_MULTIPLIER = NGINX_PREFIX + "limit-burst-multiplier"
PROXY_READ_TIMEOUT = NGINX_PREFIX + "proxy-read-timeout"
PROXY_SEND_TIMEOUT = NGINX_PREFIX + "proxy-send-timeout"
REWRITE_TARGET = NGINX_PREFIX + "rewrite-target"
SSL_REDIRECT = NGINX_PREFIX + "ssl-redirect"
FORCE_SSL_REDIRECT = NGINX_PREFIX + "force-ssl-redirect"
UPSTREAM_VHOST = NGINX_PREFIX + "upstream-vhost"
PROXY_REDIRECT_FROM = NGINX_PREFIX + "proxy-redirect-from"
PROXY_REDIRECT_TO = NGINX_PREFIX + "proxy-redirect-to"
PROXY_COOKIE_PATH = NGINX_PREFIX + "proxy-cookie-path"
UNDERSCORES_IN_HEADERS = NGINX_PREFIX + "enable-underscores-in-headers"
USE_REGEX = NGINX_PREFIX + "use-regex"
CLIENT_HEADER_BUFFER_SIZE = NGINX_PREFIX + "client-header-buffer-size"
LARGE_CLIENT_HEADER_BUFFERS = NGINX_PREFIX + "large-client-header-buffers"
WHITELIST_SOURCE_RANGE = NGINX_PREFIX + "whitelist-source-range"

# cert-manager ingress-shim annotations
CERT_MANAGER_CLUSTER_ISSUER = CERT_MANAGER_PREFIX + "cluster-issuer"
CERT_MANAGER_ISSUER = CERT_MANAGER_PREFIX + "issuer"
CERT_MANAGER_ISSUER_KIND = CERT_MANAGER_PREFIX + "issuer-kind"
CERT_MANAGER_ISSUER_GROUP = CERT_MANAGER_PREFIX + "issuer-group"
CERT_MANAGER_COMMON_NAME = CERT_MANAGER_PREFIX + "common-name"
CERT_MANAGER_DURATION = CERT_MANAGER_PREFIX + "duration"
CERT_MANAGER_RENEW_BEFORE = CERT_MANAGER_PREFIX + "renew-before"

NGINX_ANNOTATIONS = (
    AUTH_TYPE, AUTH_SECRET, AUTH_REALM, AUTH_URL,
    AUTH_TLS_VERIFY_CLIENT, AUTH_TLS_SECRET,
    PROXY_BODY_SIZE, CONFIGURATION_SNIPPET, SERVER_SNIPPET,
    ENABLE_CORS, CORS_ALLOW_ORIGIN, CORS_ALLOW_METHODS, CORS_ALLOW_HEADERS,
    CORS_ALLOW_CREDENTIALS, CORS_MAX_AGE, CORS_EXPOSE_HEADERS,
    PROXY_BUFFERING, PROXY_BUFFER_SIZE, SERVICE_UPSTREAM,
    ENABLE_OPENTRACING, ENABLE_OPENTELEMETRY,
    BACKEND_PROTOCOL, GRPC_BACKEND,
    LIMIT_CONNECTIONS, LIMIT_RPS, LIMIT_RPM, LIMIT_BURST_MULTIPLIER,
    PROXY_READ_TIMEOUT, PROXY_SEND_TIMEOUT,
    REWRITE_TARGET, SSL_REDIRECT, FORCE_SSL_REDIRECT, UPSTREAM_VHOST,
    PROXY_REDIRECT_FROM, PROXY_REDIRECT_TO, PROXY_COOKIE_PATH,
    UNDERSCORES_IN_HEADERS, USE_REGEX,
    CLIENT_HEADER_BUFFER_SIZE, LARGE_CLIENT_HEADER_BUFFERS,
    WHITELIST_SOURCE_RANGE,
)

CERT_MANAGER_ANNOTATIONS = (
    CERT_MANAGER_CLUSTER_ISSUER, CERT_MANAGER_ISSUER,
    CERT_MANAGER_ISSUER_KIND, CERT_MANAGER_ISSUER_GROUP,
    CERT_MANAGER_COMMON_NAME, CERT_MANAGER_DURATION, CERT_MANAGER_RENEW_BEFORE,
)

ALL_ANNOTATIONS = NGINX_ANNOTATIONS + CERT_MANAGER_ANNOTATIONS

# Annotations owned by the route compiler
ROUTE_ANNOTATIONS = (BACKEND_PROTOCOL, GRPC_BACKEND, USE_REGEX)

# Annotation prefixes from unrelated tooling (reported ignored, never warned)
ECOSYSTEM_PREFIXES = (
    "kubectl.kubernetes.io/",
    "meta.helm.sh/",
    "helm.sh/",
    "argocd.argoproj.io/",
    "app.kubernetes.io/",
    "kubernetes.io/ingress.class",
)

# Pseudo report keys for outcomes not tied to a single annotation
REPORT_KEY_CERTIFICATE = "cert-manager/certificate"
REPORT_KEY_PATH_REGEX = "path-regex-heuristic"

TRAEFIK_API_VERSION = "traefik.io/v1alpha1"
CERT_MANAGER_API_VERSION = "cert-manager.io/v1"
CERT_MANAGER_GROUP = "cert-manager.io"

# NGINX default when limit-burst-multiplier is not set
DEFAULT_BURST_MULTIPLIER = 5

# Ingress classes converted when the config does not say otherwise
DEFAULT_INGRESS_CLASSES = ("nginx",)

ENTRY_POINT_WEB = "web"
ENTRY_POINT_WEBSECURE = "websecure"
