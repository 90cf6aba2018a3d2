"""Constants for filebucket."""

# Default port of the bucket service (the traditional agent/master port)
DEFAULT_PORT = 8140

# Environment variables
BUCKETDIR_ENV = "FILEBUCKET_BUCKETDIR"
CONFIG_ENV = "FILEBUCKET_CONFIG"

# On-disk layout (inside a bucket root)
OBJECTS_DIR = "objects"
INDEX_FILE = "index.sqlite"

# Client defaults
DEFAULT_TIMEOUT = 30.0

# Version
FILEBUCKET_VERSION = "0.1.0"
