import logging
import sys

from .config import settings

logger = logging.getLogger('check-in-logger')
logger.setLevel(settings.LOG_LEVEL)

handler = logging.StreamHandler(sys.stdout)
handler.setLevel(settings.LOG_LEVEL)
handler.setFormatter(
    logging.Formatter('%(asctime)s %(levelname)s [%(module)s] %(message)s')
)
logger.addHandler(handler)
