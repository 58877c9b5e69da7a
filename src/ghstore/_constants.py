"""Internal constants shared across the library."""

API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
ACCEPT = "application/vnd.github+json"
USER_AGENT = "ghstore/1.0 (+aiohttp)"

DEFAULT_BRANCH = "main"
SCANS_PATH = "data/scans.json"
VEHICLES_PATH = "data/vehicles.json"

# Conditional-write rejections from the contents API.
# 409: branch moved / sha conflict, 422: sha missing or not matching.
CONFLICT_STATUSES: frozenset[int] = frozenset({409, 422})
