"""
AI-assisted event descriptions with bounded retries.

The generator is called once, then up to AI_MAX_RETRIES more times while it
reports it is busy, sleeping a fixed delay between attempts. The service
never invents a description of its own: on failure the caller is expected
to fall back to manual entry.
"""

import logging
import os
import time
from typing import Any, Callable, Dict, Mapping, Optional

from dotenv import load_dotenv

from eventhub.ai_service.describer import DescriberBusy, DescriberError
from eventhub.auth_service.models import Identity, ROLE_ADMIN
from eventhub.auth_service.utils import require_role
from eventhub.common.errors import RateLimited, ServiceError, ValidationError

load_dotenv()

logger = logging.getLogger(__name__)

AI_MAX_RETRIES = int(os.getenv("AI_MAX_RETRIES", 2))
AI_RETRY_DELAY_SECONDS = float(os.getenv("AI_RETRY_DELAY_SECONDS", 2))
AI_RETRY_AFTER_SECONDS = int(os.getenv("AI_RETRY_AFTER_SECONDS", 30))


def _text(data: Mapping[str, Any], key: str) -> Optional[str]:
    val = data.get(key)
    if isinstance(val, str) and val.strip():
        return val.strip()
    return None


def generate_description(identity: Identity, data: Mapping[str, Any], describer,
                         sleep: Optional[Callable[[float], None]] = None) -> Dict[str, Any]:
    """
    Ask the configured generator for an event description.

    Args:
        identity: the caller; must be an admin.
        data: {title, venue, eventType?, location?}
        describer: an OpenAIDescriber/GeminiDescriber, or None if unconfigured.
        sleep: delay function, defaults to time.sleep.

    Raises:
        Forbidden: caller is not an admin.
        ValidationError: title or venue is blank.
        RateLimited: still busy after every retry.
        ServiceError: not configured, or any other generator failure.
    """
    require_role(identity, ROLE_ADMIN)
    sleep = sleep or time.sleep

    title = _text(data, "title")
    venue = _text(data, "venue")
    if not title or not venue:
        fields = {}
        if not title:
            fields["title"] = "title is required"
        if not venue:
            fields["venue"] = "venue is required"
        raise ValidationError("Title and venue are required", fields=fields)

    if describer is None:
        raise ServiceError("AI service is not configured.")

    attempts = 1 + AI_MAX_RETRIES
    for attempt in range(1, attempts + 1):
        try:
            description = describer.describe(
                title, venue, _text(data, "eventType"), _text(data, "location")
            )
            return {"description": description, "isAiGenerated": True}
        except DescriberBusy as e:
            logger.warning(f"AI service busy (attempt {attempt}/{attempts}): {e}")
            if attempt == attempts:
                raise RateLimited(
                    "Too many requests. Please wait a moment and try again.",
                    retry_after=e.retry_after or AI_RETRY_AFTER_SECONDS,
                )
            sleep(AI_RETRY_DELAY_SECONDS)
        except DescriberError as e:
            logger.error(f"AI description failed: {e}")
            raise ServiceError(f"{e} You can write the description manually.")
