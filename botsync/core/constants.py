"""
Centralized constants for the sync job (collection names, field names, status values).

Change store schema names here instead of scattering literals across the engine and adapters.
Firestore and RTDB both use the snake_case schema written by the dashboard and the bots.
"""

# Scheduler job id (must match the id used in main.py add_job)
SYNC_TICK_JOB_ID = "lifecycle_tick"

# Schedule / deployment lifecycle
STATUS_SCHEDULED = "scheduled"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"

# Bot status values written by this job (bots may report others, e.g. "charging")
BOT_IDLE = "idle"
BOT_ACTIVE = "active"

# -----------------------------------------------------------------------------
# Firestore collections and fields
# -----------------------------------------------------------------------------
FS_SCHEDULES = "schedules"
FS_DEPLOYMENTS = "deployments"
FS_BOTS = "bots"

SCHEDULE_STATUS = "status"
SCHEDULE_START_AT = "scheduled_date"
SCHEDULE_END_AT = "scheduled_end_date"
SCHEDULE_BOT_ID = "bot_id"
SCHEDULE_DEPLOYMENT_ID = "deployment_id"
SCHEDULE_STARTED_AT = "started_at"
SCHEDULE_ENDED_AT = "completed_at"

DEPLOYMENT_STATUS = "status"
DEPLOYMENT_BOT_ID = "bot_id"
DEPLOYMENT_SCHEDULE_ID = "schedule_id"
DEPLOYMENT_CREATED_AT = "created_at"
DEPLOYMENT_STARTED_AT = "actual_start_time"
DEPLOYMENT_ENDED_AT = "actual_end_time"
DEPLOYMENT_METRICS = "metrics"

BOT_STATUS = "status"
BOT_CURRENT_SCHEDULE = "current_schedule_id"
BOT_LAST_UPDATED = "last_updated"

# -----------------------------------------------------------------------------
# RTDB roots and keys
# -----------------------------------------------------------------------------
RT_BOTS_ROOT = "bots"
RT_DEPLOYMENTS_ROOT = "deployments"
RT_READINGS = "readings"

RT_BOT_STATUS = "status"
RT_BOT_CURRENT_SCHEDULE = "current_schedule_id"
RT_BOT_CURRENT_DEPLOYMENT = "current_deployment_id"  # RTDB deployment node id (= bot id) or null
RT_BOT_LAST_UPDATED = "last_updated"

# -----------------------------------------------------------------------------
# Telemetry field names on readings and on the bot snapshot
# -----------------------------------------------------------------------------
TELEMETRY_PH = "ph_level"
TELEMETRY_TURBIDITY = "turbidity"
TELEMETRY_TEMPERATURE = "temp"
TELEMETRY_TEMPERATURE_ALT = "temperature"
TELEMETRY_TRASH_KG = "trash_collected"
TELEMETRY_TRASH_GRAMS = "trash_grams"
TELEMETRY_BATTERY = "battery_pct"
TELEMETRY_BATTERY_ALT = "battery"

TRASH_UNIT_KG = "kg"
TRASH_UNIT_GRAMS = "g"

# Provenance tag when no telemetry source had data
SOURCE_NONE = "none"

# -----------------------------------------------------------------------------
# Google endpoints and OAuth scopes
# -----------------------------------------------------------------------------
FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
SCOPES = (
    "https://www.googleapis.com/auth/datastore",
    "https://www.googleapis.com/auth/firebase.database",
    "https://www.googleapis.com/auth/userinfo.email",
)
