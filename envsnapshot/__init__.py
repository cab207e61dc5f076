"""Health-oriented environment snapshots: weather, air quality, UV, pollen and indoor risk."""
