import os

db_url = os.environ.get("DB_URL", "sqlite://:memory:")
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
UPLOAD_DIR = os.environ.get("UPLOAD_DIR", "uploads")
CONSOLIDATED_TTL = int(os.environ.get("CONSOLIDATED_TTL", "30"))
cors_origins = [
    o.strip()
    for o in os.environ.get(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:3001,http://localhost:3003,"
        "https://backend-road-transport.onrender.com,"
        "https://ministry-transport.onrender.com",
    ).split(",")
    if o.strip()
]
