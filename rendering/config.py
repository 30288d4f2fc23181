import os
from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv())

# "development" shows placeholders for unknown blocks and logs renderer tracebacks
APP_ENV = os.getenv("APP_ENV", "production").lower()
IS_DEVELOPMENT = APP_ENV == "development"

# Upper bound on distinct warning keys remembered by the render pipeline
WARN_ONCE_LIMIT = int(os.getenv("WARN_ONCE_LIMIT", 1000))
