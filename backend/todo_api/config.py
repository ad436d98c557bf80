import os
from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload.
#
# Tests set DISABLE_DOTENV=1 so a developer's .env cannot change the port or
# the error-handler ordering under them.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)

_TRUTHY = {"1", "true", "True", "yes", "YES"}

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000") or "3000")
LOG_LEVEL = (os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper()

# JSON body parser; 100kb matches the usual body-parser default.
BODY_LIMIT_BYTES = int(os.getenv("BODY_LIMIT_BYTES", "102400") or "102400")

# Off by default: the 404 error layer is registered before the routes and only
# sees body-parser errors. Set to 1 to register it after the routes instead.
ERROR_HANDLER_GUARDS_ROUTES = (os.getenv("ERROR_HANDLER_GUARDS_ROUTES", "0") or "0").strip() in _TRUTHY
