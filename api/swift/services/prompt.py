import logging
from datetime import datetime, timezone
from typing import Mapping
from urllib.parse import unquote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger("swift")

LANGUAGE_NAMES = {
    "en": "English",
    "el": "Greek",
}

PROVIDER_DESCRIPTIONS = {
    "openai": "Your large language model is GPT-4, created by OpenAI.",
    "anthropic": "Your large language model is Claude, created by Anthropic.",
}

SYSTEM_PROMPT = """\
- You are {name}, a friendly and helpful voice assistant.
- Respond briefly to the user's request, and do not provide unnecessary information.
- If you don't understand the user's request, ask for clarification.
- You do not have access to up-to-date information, so you should not provide real-time data.
- You are not capable of performing actions other than responding to the user.
- Do not use markdown, emojis, or other formatting in your responses. Respond in a way easily spoken by text-to-speech software.
- User location is {location}.
- The current time is {time}.
- {model_description}
- Your text-to-speech is powered by Eleven Labs.
- Respond in {language}."""


def client_location(headers: Mapping[str, str], prefix: str = "x-vercel-ip-") -> str:
    """City, region and country from edge geolocation headers, or "unknown"."""
    country = headers.get(f"{prefix}country")
    region = headers.get(f"{prefix}country-region")
    city = headers.get(f"{prefix}city")

    if not country or not region or not city:
        return "unknown"

    return f"{unquote(city)}, {region}, {country}"


def client_time(
    headers: Mapping[str, str],
    prefix: str = "x-vercel-ip-",
    now: datetime | None = None,
) -> str:
    """Current time in the client's timezone, formatted like the en-US locale.

    Falls back to the server's local timezone when the header is missing or
    names an unknown zone.
    """
    tz = None
    tz_name = headers.get(f"{prefix}timezone")
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug("Unknown client timezone: %s", tz_name)

    if now is None:
        now = datetime.now(timezone.utc)
    local = now.astimezone(tz)

    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local.month}/{local.day}/{local.year}, {hour}:{local:%M:%S} {meridiem}"


def build_system_prompt(
    language: str,
    location: str,
    time: str,
    name: str = "Swift",
    provider: str = "openai",
) -> str:
    return SYSTEM_PROMPT.format(
        name=name,
        location=location,
        time=time,
        model_description=PROVIDER_DESCRIPTIONS.get(provider, PROVIDER_DESCRIPTIONS["openai"]),
        language=LANGUAGE_NAMES[language],
    )
