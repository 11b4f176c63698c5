import logging

import telnyx

from config import settings

_LOGGER = logging.getLogger(__name__)

FROM_NUM = settings.TELNYX_FROM_NUMBER
TELNYX_API_KEY = settings.TELNYX_API_KEY
if TELNYX_API_KEY:
    telnyx.api_key = TELNYX_API_KEY

def send_sms(to: str, body: str) -> bool:
    """Send one SMS. Failures are logged here and reported as ``False``."""
    if not TELNYX_API_KEY or not FROM_NUM:
        _LOGGER.info("[SMS] DEV mode: would send to %s: %s", to, body)
        return True
    try:
        telnyx.Message.create(from_=FROM_NUM, to=to, text=body)
    except Exception:  # noqa: BLE001
        _LOGGER.exception("[SMS] Failed to send SMS to %s", to)
        return False
    _LOGGER.info("[SMS] Sent to %s", to)
    return True
