import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

WS_PATH = os.getenv("WS_PATH", "/ws")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Rooms without members are evicted after this many idle seconds (0 disables)
ROOM_IDLE_TTL = int(os.getenv("ROOM_IDLE_TTL", 3600))
ROOM_SWEEP_INTERVAL = int(os.getenv("ROOM_SWEEP_INTERVAL", 60))

MIN_OPTIONS = 2
MAX_OPTIONS = 4
