"""
Sunset Score

Predicts how good the next sunset will look from short-range hourly weather
forecasts, and flags the chance of afterglow and Tyndall rays.

Architecture:
    solar.py          - sunset time estimation (fixed 18:00 or astronomical)
    providers/        - forecast sources:
                        * open_meteo.py - live hourly forecast
                        * synthetic.py  - seedable generated forecast
    cache_manager.py  - one-hour TTL forecast cache (memory or JSON file)
    interpolation.py  - time-weighted blend of the two hours around sunset
    features.py       - samples -> WeatherData feature vector
    scoring.py        - score model, narrative and phenomena detection
    engine.py         - single-day outlook and multi-day calendar
    reminders.py      - calendar reminders via a notification scheduler
    feedback.py       - community corrections (SQLite)

Entry Points:
    main.py           - command line (today / calendar / feedback)
"""

__version__ = "1.0.0"
