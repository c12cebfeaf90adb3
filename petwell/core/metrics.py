"""
Prometheus metrics for authentication events.
"""

from prometheus_client import Counter

LOGIN_ATTEMPTS = Counter(
    "petwell_login_attempts_total",
    "Login attempts by outcome",
    ["outcome"],
)

TOKEN_REJECTIONS = Counter(
    "petwell_token_rejections_total",
    "Bearer tokens rejected by the request authenticator",
    ["reason"],
)

TOKENS_REVOKED = Counter(
    "petwell_tokens_revoked_total",
    "Tokens placed in the revocation cache at logout",
)

RATE_LIMITED_REQUESTS = Counter(
    "petwell_rate_limited_requests_total",
    "Requests rejected by the rate limiter",
)
