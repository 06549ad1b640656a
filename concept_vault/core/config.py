import os
from dotenv import load_dotenv

# Load .env from the working directory (the repository root when run from a checkout)
load_dotenv(os.path.join(os.getcwd(), ".env"))

DATA_DIR: str = os.getenv("CONCEPT_VAULT_DATA_DIR", os.path.join(os.getcwd(), "data"))

# Backing store used by the API service
DATABASE_PATH: str = os.getenv("DATABASE_PATH", os.path.join(DATA_DIR, "concepts.db"))

# Client-side snapshot of the full record set
CACHE_PATH: str = os.getenv("CACHE_PATH", os.path.join(DATA_DIR, "concepts.cache.json"))

# HTTP store gateway
API_BASE_URL: str = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "10"))

# Import file limits
MAX_IMPORT_BYTES: int = int(os.getenv("MAX_IMPORT_BYTES", str(10 * 1024 * 1024)))  # 10MB
IMPORT_EXTENSION: str = ".json"

# Server
HOST: str = os.getenv("HOST", "127.0.0.1")
PORT: int = int(os.getenv("PORT", "8000"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
