import os

# Fine charged per overdue day, in whole currency units
FINE_PER_DAY = float(os.getenv("LIBRARY_FINE_PER_DAY", "10.0"))

LOG_LEVEL = os.getenv("LIBRARY_LOG_LEVEL", "INFO").upper()

PORT = int(os.getenv("PORT", 8000))
