"""
Shared default values for the scanner.

Keep this module lightweight - it's imported by config, controller and CLI.
"""

DEFAULT_FRAME_RATE = 10.0
DEFAULT_SCAN_BOX = 250
DEFAULT_ENABLE_FILE_SCAN = True
DEFAULT_DISABLE_FLIP = False
DEFAULT_MISS_REPORT_INTERVAL = 0.0
DEFAULT_MAX_PROBED_DEVICES = 10

STATUS_TEXT_IDLE = "IDLE"
STATUS_TEXT_PERMISSION = "PERMISSION"
STATUS_TEXT_SCANNING = "Scanning"
STATUS_TEXT_MATCH = "MATCH"
STATUS_TEXT_ERROR = "ERROR"
STATUS_TEXT_NO_CAMERAS = "No Cameras"
