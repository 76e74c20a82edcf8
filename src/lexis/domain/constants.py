"""Centralized constants for the lexis scheduler.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Quality scale ----------
MIN_QUALITY = 0.0
MAX_QUALITY = 5.0
PASS_THRESHOLD = 3  # quality >= 3 counts as a correct review

# ---------- SM-2 ----------
DEFAULT_EASINESS = 2.5
MIN_EASINESS = 1.3
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
FAILURE_INTERVAL_DAYS = 1

# ---------- Mastery score ----------
MAX_MASTERY_SCORE = 15
RECOGNITION_SCORE_CAP = 10
RECALL_SCORE_CAP = 15
SCORE_DELTA_PERFECT = 2
SCORE_DELTA_PASS = 1
SCORE_DELTA_FAIL = -3

# ---------- Deadline compression ----------
DEADLINE_WINDOW_DAYS = 7

# ---------- Daily target (front-loading) ----------
FRONT_LOAD_RATIO = 0.8
REVIEW_RATIO = 0.4
MINUTES_PER_CARD = 1.5

# ---------- Prioritizer ----------
NEW_PRIORITY = 50
WEAK_PRIORITY_BASE = 100
DUE_PRIORITY_BASE = 60
EARLY_REVIEW_PRIORITY = 20
WEAK_SCORE_THRESHOLD = 5
WEAK_LEVEL_THRESHOLD = 3
BRAKE_HALVE_WEAK_COUNT = 8
BRAKE_STOP_WEAK_COUNT = 15

# ---------- Weak-word risk ----------
ACCURACY_RISK_WEIGHT = 0.7
LEECH_RISK_CAP = 0.2
LEECH_RISK_DIVISOR = 10
SCORE_RISK_CEILING = 15
SCORE_RISK_DIVISOR = 150
DANGER_THRESHOLD = 0.4
DEFAULT_WEAK_WORD_LIMIT = 50

# ---------- Assessment ----------
ASSESSMENT_BONUS_SCORE = 2
ASSESSMENT_MAX_LEVEL = 10

# ---------- Goal planning ----------
REP_VOLUME_MULTIPLIER = 2.0
MIN_SESSION_CAP = 5
MAX_SESSION_CAP = 20
LEARNING_DAYS_PER_CONSOLIDATION = 4
LEARNING_DAYS_PER_INTERIM_TEST = 7
MIN_INTERIM_TESTS = 2
MIN_PLAN_DURATION_DAYS = 5
MINUTES_PER_SESSION = 10
