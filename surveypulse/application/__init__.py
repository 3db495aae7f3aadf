# Application Layer
# =================
# Use cases and orchestration (no scoring rules of its own):
# - fetcher: schema-drift tolerant response fetching
# - cache: short-lived dashboard memoization
# - queries: clamped query parameters
# - dashboard: executive dashboard + live feed assembly
# - validation: offline recomputation and live-endpoint comparison
