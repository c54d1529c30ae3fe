"""Default configuration constants for the Reactor Production Planning chapter."""

import os

# Layout grid
ROW_HEIGHT = 160           # Height of one zone lane in canvas pixels
GRID_UNIT = 20             # Horizontal snap unit
MIN_CANVAS_HEIGHT = 600
CANVAS_WIDTH = 1200

# Reactor capacity classes (litres) and their marker sizes
CAPACITY_CLASSES = (100, 200, 500, 1000, 2000, 3000, 5000)
CAPACITY_NODE_SIZES = {
    100: 60,
    200: 65,
    500: 70,
    1000: 80,
    2000: 90,
    3000: 100,
    5000: 110,
    "default": 80,
}
DEFAULT_CAPACITY = 1000
DEFAULT_REACTOR_TYPE = "GL"

# Capacities offered by the drag palette
PALETTE_CAPACITIES = [100, 500, 1000, 2000, 3000, 5000]

# Process-wide zones created on first start
DEFAULT_ZONES = [
    {"zone_id": 0, "name": "Synthesis Factory 1", "row_index": 0},
    {"zone_id": 1, "name": "Synthesis Factory 2", "row_index": 1},
    {"zone_id": 2, "name": "Purification Plant", "row_index": 2},
    {"zone_id": 3, "name": "Pilot Plant", "row_index": 3},
]

# Business-unit categories (closed core set)
BU_CATEGORIES = {
    "OLED": "OLED 소재",
    "API": "API/중간체",
    "신사업": "신사업",
}
DEFAULT_CATEGORY = "OLED"
NEW_BUSINESS_CATEGORY = "신사업"

# Revenue is reported in billions of currency units across all chapters
REVENUE_DIVISOR = 1_000_000_000

# New batches default to the first days of the month
DEFAULT_BATCH_START_DAY = 1
DEFAULT_BATCH_END_DAY = 5
LEGACY_PRODUCT_END_DAY = 28

# Status override options shown in the schedule editor ("" = auto)
STATUS_OVERRIDE_OPTIONS = ["", "Maintenance", "Idle"]

# Persisted state keys (layout, logs and zones evolve independently)
LAYOUT_KEY = "matflow_reactors_monthly_v2"
LOGS_KEY = "matflow_logs_v2"
ZONES_KEY = "matflow_zones_v2"
LEGACY_LAYOUT_KEY = "matflow_reactors_v2"

# Floating-point tolerance for aggregate reconciliation
REVENUE_TOLERANCE = 1e-9

# Deployment settings (environment overrides)
STORE_PATH = os.environ.get("REACTOR_STORE_PATH", "reactor_state.json")
LEDGER_URL = os.environ.get("REACTOR_LEDGER_URL", "sqlite:///reactor_ledger.db")
LOG_LEVEL = os.environ.get("REACTOR_LOG_LEVEL", "INFO")

# In-session history kept for display
NOTICE_LIMIT = 50
AUDIT_LOG_LIMIT = 500
