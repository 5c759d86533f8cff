"""
Shared constants used across multiple modules.
Single source of truth for tracked entities and calendar conventions.
"""

# Tracked entities, in canonical order.  Leader tie-breaks resolve to the
# first entity listed here.
ENTITIES = ("J", "A", "M")

# Monday-first weekday names (index == date.weekday())
WEEKDAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday",
    "Friday", "Saturday", "Sunday",
)

# Average Gregorian month length in days (365.2425 / 12)
AVG_MONTH_DAYS = 30.436875

# Sliding window used for the quietest-period search and the trend blocks
WEEK_DAYS = 7

# Recent-trend deltas with |delta| <= this are treated as noise
DEFAULT_NOISE_THRESHOLD = 5

# Analysis-window policies
START_FIXED_DATE = "fixed_date"
START_FIRST_OBSERVATION_MONTH = "first_observation_month_start"
WEEK_ROLLING_7_DAY = "rolling_7_day"
WEEK_CALENDAR_MONDAY = "calendar_monday"
