from __future__ import annotations

# Environment and config defaults
DEFAULT_ENV_NAME = "dev"
DEFAULT_DEV_ENV_NAMES = ("dev", "development", "local")
DEFAULT_DEV_BACKEND_URL = "http://localhost:3000"
DEFAULT_SESSION_SECRET = "labsite-admin-dev-secret"
DEFAULT_BACKEND_TIMEOUT_SEC = 0.0
DEFAULT_PAGE_SIZE = 10
DEFAULT_MAX_PAGE_SIZE = 100
DEFAULT_MAX_UPLOAD_MB = 10

# Import defaults
DEFAULT_PREVIEW_ROW_LIMIT = 100
DEFAULT_PENDING_IMPORT_TTL_SEC = 1800.0
DEFAULT_PENDING_IMPORT_MAX_ITEMS = 64
DEFAULT_HEADER_PREVIEW_COUNT = 6
ACCEPTED_IMPORT_EXTENSIONS = (".xlsx", ".xls")

# Web defaults
DEFAULT_LOGIN_PATH = "/login"
SESSION_TOKEN_KEY = "labadmin_token"
SESSION_USER_KEY = "labadmin_user"
SESSION_FLASH_KEY = "_flashes"
