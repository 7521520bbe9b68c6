"""
Configuration settings for OCPP endpoints.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# CSMS server settings
HOST = os.getenv('OCPP_HOST', '0.0.0.0')
PORT = int(os.getenv('OCPP_PORT', 9000))
LISTEN_PATH = os.getenv('OCPP_PATH', '/')

# Charging station settings
CSMS_URL = os.getenv('CSMS_URL', 'ws://localhost:9000')
CHARGING_STATION_ID = os.getenv('CHARGING_STATION_ID', 'CS001')

# Logging settings
LOG_DIR = Path(os.getenv('LOG_DIR', BASE_DIR / 'logs'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# Supported OCPP versions
SUPPORTED_PROTOCOLS = ['ocpp2.0.1']

# Request/response settings
REQUEST_TIMEOUT = float(os.getenv('OCPP_REQUEST_TIMEOUT', 30))  # seconds
QUEUE_CAPACITY = int(os.getenv('OCPP_QUEUE_CAPACITY', 0))  # 0 = unbounded
VALIDATE_MESSAGES = os.getenv('OCPP_VALIDATE_MESSAGES', 'true').lower() != 'false'

# WebSocket settings
PING_INTERVAL = float(os.getenv('OCPP_PING_INTERVAL', 54))  # seconds
MAX_MESSAGE_BYTES = int(os.getenv('OCPP_MAX_MESSAGE_BYTES', 2 * 1024 * 1024))
RECONNECT_BACKOFF = float(os.getenv('OCPP_RECONNECT_BACKOFF', 5))  # seconds

# Basic auth credentials (station side sends them, CSMS side checks them)
BASIC_AUTH_USER = os.getenv('OCPP_BASIC_AUTH_USER')
BASIC_AUTH_PASSWORD = os.getenv('OCPP_BASIC_AUTH_PASSWORD')

# Heartbeat settings
DEFAULT_HEARTBEAT_INTERVAL = 300  # 5 minutes in seconds
