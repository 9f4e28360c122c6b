VERSION = "0.1.0"
APP_SCHEMA_VERSION = "0.1.0"
