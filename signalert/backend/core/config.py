"""
Core application configuration and constants.
"""
import os
from pathlib import Path

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
DATA_DIR = Path(os.environ.get("SIGNALERT_DATA_DIR", PROJECT_ROOT / "data"))
SIGNS_PATH = DATA_DIR / "signs.json"
HISTORY_PATH = DATA_DIR / "detection_history.json"

# Landmark geometry
NUM_LANDMARKS = 21  # points per hand
WRIST_INDEX = 0
SCALE_EPSILON = 0.01  # minimum bounding box size used as scale
Z_WEIGHT = 0.1  # depth is noisy, weigh it at 10%
MAX_DISTANCE = 0.3  # average distance at which similarity reaches 0

# Matching thresholds
SINGLE_HAND_THRESHOLD = 0.6
BOTH_HANDS_THRESHOLD = 0.6  # two-hand sign, two hands observed
PARTIAL_BOTH_HANDS_THRESHOLD = 0.5  # two-hand sign, only one hand observed
MISSING_HAND_PENALTY = 0.8

# Temporal consensus
SAMPLE_CAPACITY = 4  # detected samples kept in the rolling buffer
SAMPLE_THRESHOLD = 2  # samples in the consensus window
DETECTION_COOLDOWN_MS = 200  # minimum time between matcher runs

# Session settings
COUNTDOWN_DURATION = 3  # seconds before detection starts
DETECTION_TIMEOUT_MS = 10000  # detection window length

# Hand capture (MediaPipe)
MAX_NUM_HANDS = 2
MIN_DETECTION_CONFIDENCE = 0.7
MIN_TRACKING_CONFIDENCE = 0.5

# History
MAX_HISTORY_ENTRIES = 100

# WebSocket settings
WS_TICK_INTERVAL = 0.1  # seconds between session updates while idle on the socket
