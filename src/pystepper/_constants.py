"""Internal constants shared across the library."""

from datetime import UTC, datetime, timedelta

#: Largest counter value accepted from the hardware (signed 32-bit maximum).
MAX_COUNTER_VALUE = 2**31 - 1

#: A checkpoint is written once the count moved this many steps past the last one.
STEP_DELTA_THRESHOLD = 30

#: A checkpoint is written at least this often while steps are being counted.
SAVE_INTERVAL = timedelta(minutes=15)

#: Delay before restarting after the host removed the running task.
RESTART_DELAY = timedelta(milliseconds=500)

#: Counter sources may hold readings back for up to this long before delivery.
MAX_REPORT_LATENCY = timedelta(minutes=2)

#: "Never saved" timestamp for a fresh checkpoint.
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# ------------------------------------------------------------------
# Preference keys and defaults
# ------------------------------------------------------------------

PREF_GOAL = "goal"
PREF_GOAL_REACHED_TEXT = "goal_reached_format_text"
PREF_STEPS_TO_GO_TEXT = "steps_to_go_format_text"
PREF_YOUR_PROGRESS_TEXT = "your_progress_format_text"
PREF_IS_COUNTING_TEXT = "is_counting_text"
PREF_NOTIFICATION = "notification"

DEFAULT_GOAL = 10000
DEFAULT_GOAL_REACHED_TEXT = "{0} steps today"
DEFAULT_STEPS_TO_GO_TEXT = "{0} steps to go"
DEFAULT_YOUR_PROGRESS_TEXT = "Your progress will be shown here soon"
DEFAULT_IS_COUNTING_TEXT = "Pedometer is counting"
