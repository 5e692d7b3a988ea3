"""Internal constants shared across the library."""

API_URL = "https://api.mixpanel.com"
TRACK_ENDPOINT = "/track/"
ENGAGE_ENDPOINT = "/engage/"
DEFAULT_STORAGE_KEY = "mixpanel:super:props"
USER_AGENT = "pymixpanel"
