import os

import uvicorn

from envsnapshot.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="envsnapshot_api")
    if not settings.waqi_token:
        logger.info("ENVSNAP_WAQI_TOKEN not set; ground-station AQI disabled")

    uvicorn.run(
        "envsnapshot.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
