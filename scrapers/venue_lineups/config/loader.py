"""
Crawl input loading and validation.

Input comes from, in order:
- An explicit JSON file (--input)
- The VENUES_JSON environment variable
- The built-in Austin venue list
"""

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import structlog
from pydantic import ValidationError

from ..models import CrawlInput, ParserId

log = structlog.get_logger(__name__)

ENV_VAR = "VENUES_JSON"

DEFAULT_VENUES = [
    {"id": "mohawkAustin", "startUrl": "https://mohawkaustin.com/"},
    {"id": "comeAndTakeIt", "startUrl": "https://comeandtakeitproductions.com/calendar/"},
    {"id": "continentalClubAustin", "startUrl": "https://continentalclub.com/austin/"},
    {"id": "parishAustin", "startUrl": "https://parishaustin.com/calendar/"},
    {"id": "empireAtAustin", "startUrl": "https://empireatx.com/calendar/"},
    {"id": "stubbsAustin", "startUrl": "https://stubbsaustin.com/concert-listings/"},
    {"id": "emosAustin", "startUrl": "https://www.emosaustin.com/shows/calendar/"},
    {"id": "scootInn", "startUrl": "https://www.scootinnaustin.com/shows/calendar"},
    {"id": "antones", "startUrl": "https://antonesnightclub.com/calendar/"},
]


class ConfigError(Exception):
    """Raised when crawl input is missing or invalid."""

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        self.errors = errors or []
        super().__init__(message)


def get_default_input() -> dict[str, Any]:
    """Return the default crawl input document."""
    return {
        "venues": [dict(venue) for venue in DEFAULT_VENUES],
        "maxConcurrency": 5,
    }


def validate_input(data: Any) -> list[str]:
    """
    Validate a raw input document and return list of errors.

    Returns:
        List of error messages (empty if valid)
    """
    errors: list[str] = []

    if not isinstance(data, dict):
        return ["Input must be a JSON object"]

    venues = data.get("venues")
    if not isinstance(venues, list) or not venues:
        errors.append("Missing required field: venues (non-empty list)")
        venues = []

    known = {parser_id.value for parser_id in ParserId}
    seen_ids: set[str] = set()
    for index, venue in enumerate(venues):
        if not isinstance(venue, dict):
            errors.append(f"venues[{index}] must be an object")
            continue
        venue_id = venue.get("id")
        if not venue_id:
            errors.append(f"venues[{index}]: missing id")
        elif venue_id in seen_ids:
            errors.append(f"venues[{index}]: duplicate id {venue_id}")
        else:
            seen_ids.add(venue_id)

        start_url = venue.get("startUrl") or venue.get("start_url")
        if not start_url:
            errors.append(f"venues[{index}]: missing startUrl")
        elif not str(start_url).startswith(("http://", "https://")):
            errors.append(f"venues[{index}]: startUrl must be http(s): {start_url}")

        parser_id = venue.get("parserId") or venue.get("parser_id") or venue_id
        if parser_id and parser_id not in known:
            errors.append(f"venues[{index}]: unknown parser id {parser_id}")

    concurrency = data.get("maxConcurrency", 5)
    if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency < 1:
        errors.append(f"Invalid maxConcurrency: {concurrency} (must be a positive integer)")

    return errors


def parse_input(data: Any) -> CrawlInput:
    """
    Validate and build a CrawlInput.

    Raises:
        ConfigError: If the document is invalid
    """
    errors = validate_input(data)
    if errors:
        log.error("invalid_crawl_input", errors=errors)
        raise ConfigError(f"Invalid crawl input: {'; '.join(errors)}", errors)
    try:
        return CrawlInput.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid crawl input: {e}") from e


def _read_env(env: Mapping[str, str]) -> Optional[Any]:
    raw = env.get(ENV_VAR)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        log.warning("venues_env_invalid", var=ENV_VAR, error=str(e))
        return None


def load_crawl_input(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CrawlInput:
    """
    Load crawl input from a file, the environment or the defaults.

    Args:
        path: JSON input file; takes precedence when given
        env: Environment to read VENUES_JSON from (defaults to os.environ)

    Returns:
        Validated CrawlInput

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    env = os.environ if env is None else env

    if path is not None:
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise ConfigError(f"Input file not found: {path}") from None
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not read input file {path}: {e}") from e
        log.info("crawl_input_loaded", source="file", path=str(path))
        return parse_input(data)

    data = _read_env(env)
    if data is not None:
        log.info("crawl_input_loaded", source="env", var=ENV_VAR)
        return parse_input(data)

    log.info("crawl_input_loaded", source="defaults", venues=len(DEFAULT_VENUES))
    return parse_input(get_default_input())
