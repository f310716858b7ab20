from importlib.resources import files

from platformdirs import user_config_path, user_data_path, user_log_path

PACKAGE_NAME = "novelti"  # Python package name

# -----------------------------------------------------------------------------
# User-writable directories & files
# -----------------------------------------------------------------------------

USER_CONFIG_DIR = user_config_path(PACKAGE_NAME, appauthor=False)
USER_DATA_DIR = user_data_path(PACKAGE_NAME, appauthor=False)
LOG_DIR = user_log_path(PACKAGE_NAME, appauthor=False)

SETTING_PATH = USER_CONFIG_DIR / "settings.json"
THUMBNAIL_DB_PATH = USER_DATA_DIR / "novelti.sqlite"

# -----------------------------------------------------------------------------
# Embedded resources
# -----------------------------------------------------------------------------

RES = files("novelti.resources")

# Config
DEFAULT_CONFIG_FILE = RES.joinpath("config", "settings.sample.toml")

# Default config filename (used when copying embedded template)
DEFAULT_CONFIG_FILENAME = "settings.toml"
