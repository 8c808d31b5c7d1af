import logging

from .base import *  # noqa: F401,F403
from .base import PAYMOB_HMAC_SECRET

DEBUG = False

if not PAYMOB_HMAC_SECRET:
    logging.getLogger(__name__).warning(
        "PAYMOB_HMAC_SECRET is not configured; Paymob callbacks will be rejected"
    )
