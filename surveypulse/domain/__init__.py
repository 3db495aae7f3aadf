# Domain Layer
# ============
# Pure survey analytics, no I/O:
# - scoring: rating normalization onto the 0-10 / 0-5 scales
# - periods: dashboard period -> concrete time window
# - aggregation: KPIs, daily trend, low-rating list
# - audit: data-quality counts over raw rows
#
# Shared by the HTTP dashboard and the offline validation tool.
