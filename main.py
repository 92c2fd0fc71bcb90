"""
Traffic Incidents Service - Root Entry Point.

All application logic lives in src/traffic_incidents.

For development: python main.py [--reload]
For production: uvicorn main:app, or traffic-incidents --production
"""

from traffic_incidents.main import get_application, main

# App instance for ASGI servers (uvicorn, gunicorn)
app = get_application()

if __name__ == "__main__":
    main()
