from config.config import *  # noqa: F401,F403

SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False

# Tests never reach a real gateway
PUSH_GATEWAY_URL = None
PUSH_TIMEOUT_SECONDS = 1.0
