"""
SurveyPulse - Web Server Entry Point
====================================

Run this to start the analytics API:
    python main.py

Then query http://127.0.0.1:8000/api/analytics?action=survey-executive

To recompute (and compare) a tenant's dashboard offline:
    python validate_dashboard.py --help
"""

import os

import uvicorn


def main():
    """Start the web server."""
    host = os.getenv("SURVEYPULSE_HOST", "127.0.0.1")
    port = int(os.getenv("SURVEYPULSE_PORT", "8000"))

    print("\n" + "=" * 50)
    print("   SurveyPulse - Analytics API")
    print("=" * 50)
    print(f"\n   Starting server at http://{host}:{port}")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "surveypulse.web.app:app",
        host=host,
        port=port,
        reload=os.getenv("SURVEYPULSE_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level="info"
    )


if __name__ == "__main__":
    main()
