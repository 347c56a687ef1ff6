import logging
import os
from typing import Dict

GLOBAL_LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()
if GLOBAL_LOG_LEVEL not in logging.getLevelNamesMapping():
    GLOBAL_LOG_LEVEL = "INFO"

log_sources = [
    "AUTH",
    "JWKS",
    "CACHE",
    "HTTP",
    "INITIALIZATION",
]

SRC_LOG_LEVELS: Dict[str, str] = {}

for source in log_sources:
    log_env_var = source + "_LOG_LEVEL"
    SRC_LOG_LEVELS[source] = os.environ.get(log_env_var, "").upper()
    if SRC_LOG_LEVELS[source] not in logging.getLevelNamesMapping():
        SRC_LOG_LEVELS[source] = GLOBAL_LOG_LEVEL
