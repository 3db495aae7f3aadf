# SurveyPulse - Survey Response Analytics
# =======================================
# Turns loosely-typed survey responses (WhatsApp, QR/totem, web links) into
# a canonical satisfaction score, daily trends and an executive dashboard.
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI web app and the validation CLI
# - Application:    Fetching, caching and dashboard assembly
# - Domain:         Pure scoring / period / aggregation logic (no I/O)
# - Infrastructure: Response stores, importer, HTTP client, settings
#
# The live endpoint and the offline validation tool share the domain layer,
# so their numbers cannot drift apart.

__version__ = "1.0.0"
