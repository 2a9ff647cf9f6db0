"""Application constants: storage keys, endpoint paths, display colors and fixed texts."""

# Local key-value storage keys
HISTORY_STORAGE_KEY = "history"
TOKEN_STORAGE_KEY = "token"
USER_ID_STORAGE_KEY = "userId"
USER_NAME_STORAGE_KEY = "userName"
USER_EMAIL_STORAGE_KEY = "userEmail"
REMINDERS_STORAGE_KEY = "userReminders"
GOALS_STORAGE_KEY = "userGoals"
FEEDBACK_STORAGE_KEY = "aiFeedback"
SCAN_STREAK_STORAGE_KEY = "scanStreak"
TOTAL_SCANS_STORAGE_KEY = "totalScans"
LAST_SCAN_DATE_STORAGE_KEY = "lastScanDate"
LOGGED_IN_STORAGE_KEY = "loggedIn"

# Keys removed from local storage when the user logs out
SESSION_STORAGE_KEYS = [
    LOGGED_IN_STORAGE_KEY,
    USER_NAME_STORAGE_KEY,
    USER_EMAIL_STORAGE_KEY,
    HISTORY_STORAGE_KEY,
    REMINDERS_STORAGE_KEY,
    GOALS_STORAGE_KEY,
    FEEDBACK_STORAGE_KEY,
    SCAN_STREAK_STORAGE_KEY,
    TOTAL_SCANS_STORAGE_KEY,
    LAST_SCAN_DATE_STORAGE_KEY,
]

# Goal names whose target counts completed scans
SCAN_GOAL_NAMES = ("Complete X Scans", "Record Heartbeat X Times")

# Remote API endpoints (relative to ANIMUS_API_BASE_URL)
SCAN_ENDPOINTS = {
    "cardiac": "/api/cardiac-scan",
    "skin": "/api/skin-scan",
    "eye": "/api/eye-scan",
    "vitals": "/api/vitals",
    "symptom": "/api/symptom-report",
    "medical_report": "/api/medical-report",
}
MEDICAL_HISTORY_ENDPOINT = "/api/medical-history"
RECOMMENDATIONS_ENDPOINT = "/api/recommendations"
HEALTH_REPORTS_ENDPOINT = "/api/health-reports"
PROFILE_ENDPOINT = "/api/profile"
CHAT_ENDPOINT = "/api/chat"

# Display colors
COLOR_PRIMARY = "#5A67D8"
COLOR_SECONDARY = "#ED8936"  # amber
COLOR_ACCENT_GREEN = "#48BB78"
COLOR_ACCENT_RED = "#F56565"
COLOR_TEXT_DEFAULT = "#2D3748"

URGENCY_COLORS = {
    "Low": COLOR_ACCENT_GREEN,
    "Medium": COLOR_SECONDARY,
    "High": COLOR_ACCENT_RED,
}

SCAN_TYPE_NAMES = {
    "cardiac": "Cardiac Scan",
    "skin": "Skin Scan",
    "eye": "Eye Scan",
    "vitals": "Vitals Monitor",
    "symptom": "Symptom Check",
    "medical_report": "Medical Report",
}

SCAN_TYPE_ICONS = {
    "cardiac": "heart",
    "skin": "body",
    "eye": "eye",
    "vitals": "thermometer",
    "symptom": "chatbox-ellipses",
    "medical_report": "document-text",
}
DEFAULT_SCAN_TYPE_ICON = "document"

# Value meaning "no filter" in history views
ALL_FILTER_VALUE = "All"

# Chat assistant
CHAT_SYSTEM_PROMPT = "You are a helpful assistant"
CHAT_FALLBACK_REPLY = "Sorry, I could not process your request. Please try again."

# Text shown when no analysis is available for a record
NO_ANALYSIS_TEXT = "No AI analysis available."

FEEDBACK_TYPES = ("helpful", "unhelpful")

REPORT_DISCLAIMER = (
    "Disclaimer: This report is generated by an AI-powered health monitoring system and is for "
    "informational purposes only. It is not a substitute for professional medical advice, diagnosis, "
    "or treatment. Always seek the advice of your physician or other qualified health provider with "
    "any questions you may have regarding a medical condition."
)
DEFAULT_USER_NAME = "Animus User"
DEFAULT_USER_EMAIL = "user@example.com"
