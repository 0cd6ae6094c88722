"""Configuration settings for the file store server."""
import os

# Network
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "4500"))
BASE_URL = os.getenv("BASE_URL", f"http://localhost:{PORT}")

# Directory paths
# TEMP_DIR holds in-flight uploads and must live on the same filesystem as DATA_DIR
DATA_DIR = os.getenv("DATA_DIR", "./uploads")
TEMP_DIR = os.getenv("TEMP_DIR", "./temp")

# Streaming
CHUNK_SIZE = 8192  # 8KB chunks
FILE_MODE = 0o644

# Logging
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
