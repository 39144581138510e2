"""
Event description generators backed by OpenAI (preferred) or Gemini.

Each generator makes exactly one call per `describe()` with a bounded
timeout and translates provider errors into two signals:

- DescriberBusy:  rate limited or overloaded; worth retrying shortly
- DescriberError: anything else (bad key, quota, timeout, empty output)
"""

import logging
import os
from typing import Optional

import openai
from openai import OpenAI
import google.genai as genai
from google.genai import errors as genai_errors
from google.genai import types
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# --- API KEY RETRIEVAL ---
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")
AI_TIMEOUT_SECONDS = float(os.environ.get("AI_TIMEOUT_SECONDS", 10))

BUSY_STATUS_CODES = (429, 503, 529)
CONFIG_STATUS_CODES = (401, 403)

# --- SYSTEM PROMPTS ---
SYSTEM_PROMPT = (
    "You are an expert event marketing copywriter who creates compelling event "
    "descriptions that attract attendees and clearly communicate value."
)

DESCRIPTION_PROMPT = """Generate a compelling and professional event description for the following event:

Event Title: {title}
Venue: {venue}
Event Type: {event_type}
Location: {location}

Create an engaging description that:
- Highlights the value proposition of attending
- Mentions networking opportunities
- Emphasizes learning and growth potential
- Uses professional yet inviting language
- Is between 100-200 words
- Sounds authentic and not overly promotional

Please respond with only the description text, no additional formatting or labels."""


class DescriberBusy(Exception):
    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class DescriberError(Exception):
    pass


def build_prompt(title: str, venue: str, event_type: Optional[str] = None,
                 location: Optional[str] = None) -> str:
    return DESCRIPTION_PROMPT.format(
        title=title,
        venue=venue,
        event_type=event_type or "conference",
        location=location or "venue location",
    )


def _retry_after_header(error: "openai.APIStatusError") -> Optional[int]:
    value = error.response.headers.get("retry-after") if error.response is not None else None
    if value and value.isdigit():
        return int(value)
    return None


def _clean_output(text: Optional[str]) -> str:
    if not text or not text.strip():
        raise DescriberError("No description generated")
    return text.strip()


class OpenAIDescriber:
    name = "openai"

    def __init__(self, api_key: str, model: str = OPENAI_MODEL, timeout: float = AI_TIMEOUT_SECONDS):
        # retries are handled by the caller, one HTTP call per describe()
        self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model

    def describe(self, title: str, venue: str, event_type: Optional[str] = None,
                 location: Optional[str] = None) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(title, venue, event_type, location)},
                ],
                max_tokens=300,
                temperature=0.7,
            )
        except openai.RateLimitError as e:
            if e.code == "insufficient_quota":
                raise DescriberError("AI service quota exceeded. Please try again later.")
            raise DescriberBusy("Too many requests. Please wait a moment and try again.",
                                retry_after=_retry_after_header(e))
        except openai.APIStatusError as e:
            if e.status_code in BUSY_STATUS_CODES:
                raise DescriberBusy("AI service is busy. Please try again shortly.",
                                    retry_after=_retry_after_header(e))
            if e.status_code in CONFIG_STATUS_CODES:
                raise DescriberError("AI service configuration error. Please contact support.")
            raise DescriberError(f"AI service error ({e.status_code})")
        except openai.APITimeoutError:
            raise DescriberError("AI service timed out")
        except openai.APIConnectionError:
            raise DescriberError("Could not reach AI service")

        if not response.choices:
            raise DescriberError("No description generated")
        return _clean_output(response.choices[0].message.content)


class GeminiDescriber:
    name = "gemini"

    def __init__(self, api_key: str, model: str = GEMINI_MODEL, timeout: float = AI_TIMEOUT_SECONDS):
        # HttpOptions.timeout is in milliseconds
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )
        self.model = model

    def describe(self, title: str, venue: str, event_type: Optional[str] = None,
                 location: Optional[str] = None) -> str:
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=build_prompt(title, venue, event_type, location),
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_PROMPT,
                    max_output_tokens=400,
                    temperature=0.7,
                ),
            )
        except genai_errors.APIError as e:
            if e.code in BUSY_STATUS_CODES:
                raise DescriberBusy("AI service is busy. Please try again shortly.")
            if e.code in CONFIG_STATUS_CODES:
                raise DescriberError("AI service configuration error. Please contact support.")
            raise DescriberError(f"AI service error ({e.code})")
        except Exception as e:
            # transport failures (timeouts, DNS) come straight from the HTTP client
            logger.warning(f"Gemini request failed: {e}")
            raise DescriberError("Could not reach AI service")

        return _clean_output(response.text)


# --- CLIENT INITIALIZATION ---
_describer = None
_initialized = False


def init_describer():
    """
    Pick the description generator: OpenAI if a key is set, else Gemini.
    Returns None when neither is configured.
    """
    global _describer, _initialized
    _initialized = True
    _describer = None

    # 1. Try to initialize OpenAI first
    if OPENAI_API_KEY:
        try:
            _describer = OpenAIDescriber(OPENAI_API_KEY)
            logger.info("Successfully initialized OpenAI client.")
            return _describer
        except Exception as e:
            logger.warning(f"OpenAI client initialization failed: {e}. Trying fallback.")

    # 2. If OpenAI failed, try Gemini
    if GEMINI_API_KEY:
        try:
            _describer = GeminiDescriber(GEMINI_API_KEY)
            logger.info("Successfully initialized Gemini client.")
        except Exception as e:
            logger.warning(f"Gemini client initialization failed: {e}.")

    return _describer


def get_describer():
    if not _initialized:
        init_describer()
    return _describer
