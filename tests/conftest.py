import os

# Keep test runs off disk: in-memory HTTP cache and location store.
os.environ.setdefault("ENVSNAP_HTTP_CACHE_BACKEND", "memory")
os.environ.setdefault("ENVSNAP_LOCATION_STORE", "memory")
os.environ.pop("ENVSNAP_WAQI_TOKEN", None)
