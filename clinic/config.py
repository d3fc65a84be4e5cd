"""
Runtime configuration for the Coldesthetic back-office.

Every value is read once from the environment at import time, with a default
suitable for a local backend. The backend base URL is the only setting most
deployments need to change.
"""
# coldesthetic/clinic/config.py

import os

API_BASE_URL = os.environ.get("COLDESTHETIC_API_BASE_URL", "http://localhost:8000").rstrip("/")
API_PREFIX = "/api/v1"

# The backend sets this cookie readable from the client and expects it echoed back.
CSRF_COOKIE_NAME = "XSRF-TOKEN"
CSRF_HEADER_NAME = "X-XSRF-TOKEN"
CSRF_COOKIE_PATH = "/sanctum/csrf-cookie"

REQUEST_TIMEOUT_SECONDS = float(os.environ.get("COLDESTHETIC_REQUEST_TIMEOUT", "10"))
CACHE_TTL_SECONDS = float(os.environ.get("COLDESTHETIC_CACHE_TTL", "30"))

LOCALE = "es_CO"

LOG_LEVEL = os.environ.get("COLDESTHETIC_LOG_LEVEL", "INFO").upper()

# Page routes
ROOT_ROUTE = "home"
LOGIN_ROUTE = "login"
DEFAULT_AUTHENTICATED_ROUTE = "register-patient"

ROLE_ADMIN = "ADMIN"
ROLE_REMITENTE = "REMITENTE"


def storage_url(path):
    """Resolves an image path returned by the backend into an absolute URL."""
    if not path:
        return ""
    if path.startswith(("http://", "https://")):
        return path
    clean = path.lstrip("/")
    if clean.startswith("storage/"):
        return f"{API_BASE_URL}/{clean}"
    return f"{API_BASE_URL}/storage/{clean}"
