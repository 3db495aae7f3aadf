# Infrastructure Layer
# ====================
# Contains all external service integrations:
# - persistence/: response stores (SQLite file, PostgREST over HTTP)
# - importer/: CSV/Excel survey response import
# - api/: HTTP client for the live analytics endpoint
# - config/: Environment and settings management
#
# This layer can be replaced entirely without affecting domain/application layers.
