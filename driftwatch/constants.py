"""Constants used across driftwatch.

This module defines shared constants to ensure consistency.
"""

# Environment
ENV_PREFIX = "DRIFTWATCH_"
LOG_LEVEL_ENV = "DRIFTWATCH_LOG_LEVEL"
LOG_FORMAT_ENV = "DRIFTWATCH_LOG_FORMAT"
CONFIG_PATH_ENV = "DRIFTWATCH_CONFIG_PATH"

# Terraform always has this workspace; it is never reported as extra
DEFAULT_WORKSPACE = "default"

# Atlantis
DEFAULT_REF = "master"
DEFAULT_VCS_TYPE = "Github"
DEFAULT_REPO_CONFIG_FILE = "atlantis.yaml"
ATLANTIS_TOKEN_HEADER = "X-Atlantis-Token"
ATLANTIS_PLAN_PATH = "/api/plan"
ATLANTIS_TIMEOUT_S = 600.0  # plans can take minutes

# Terraform backends that mark a root module when auto-generating config
AUTOGEN_BACKENDS = ("s3", "gcs", "azurerm")
AUTOGEN_WHEN_MODIFIED = ["**/*.tf.*"]

# Cache
DEFAULT_CACHE_VALID_DURATION = "24h"
DEFAULT_SQLITE_CACHE_PATH = "~/.driftwatch/cache.db"

# Notifications
SLACK_TIMEOUT_S = 10.0
SLACK_INLINE_SUMMARY_MAX_CHARS = 50  # longer summaries go in a code block
TELEGRAM_MESSAGE_MAX_LENGTH = 4000
TELEGRAM_TOKEN_ENV = "TELEGRAM_BOT_TOKEN"

MAIN_MODULE = "__main__"
