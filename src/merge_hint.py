# merge_hint.py
# Advisory move hints from an OpenAI-compatible chat model.
# The text is never parsed and never feeds back into game state; every failure
# degrades to a fixed message.

import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from merge_config import Settings, get_settings
from merge_core import Board, format_board, validate_board

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "API Key missing. Cannot generate hint."
EMPTY_HINT_MESSAGE = "Could not generate a hint."
UNAVAILABLE_MESSAGE = "The AI is currently offline or encountered an error."

HINT_MAX_TOKENS = 50
HINT_TEMPERATURE = 0.2


HINT_PROMPT_TEMPLATE = """I am playing 2048. Here is the current state of the 4x4 board (0 represents an empty cell):

{board}

Current Score: {score}.

Analyze the board. Provide a very short, strategic hint (max 15 words) and suggest the single best next move (UP, DOWN, LEFT, or RIGHT).
Format: "Move [DIRECTION]: [Reason]"
"""


def build_hint_prompt(board: Board, score: int) -> str:
    return HINT_PROMPT_TEMPLATE.format(board=format_board(board), score=score)


def create_client(settings: Settings) -> Optional[OpenAI]:
    """Returns a configured client, or None when no API key is set."""
    if not settings.openai_api_key:
        return None
    return OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.hint_timeout,
        max_retries=0,
    )


def get_hint(board: Board, score: int, client=None, settings: Optional[Settings] = None) -> str:
    """
    Asks the model for a one-line move suggestion.

    Args:
        board: Current board. Validated before anything is sent.
        score: Cumulative score shown to the model.
        client: OpenAI client to use. Built from settings when omitted.
        settings: Defaults to get_settings().

    Returns:
        The model's text, or one of the fallback messages.

    Raises:
        InvalidBoardError: If the board is malformed.
    """
    validate_board(board)
    settings = settings or get_settings()
    if client is None and not settings.openai_api_key:
        logger.warning("Hint requested but no API key is configured")
        return MISSING_KEY_MESSAGE

    try:
        if client is None:
            client = create_client(settings)
        response = client.chat.completions.create(
            model=settings.hint_model,
            messages=[{"role": "user", "content": build_hint_prompt(board, score)}],
            max_tokens=HINT_MAX_TOKENS,
            temperature=HINT_TEMPERATURE,
        )
        text = response.choices[0].message.content if response.choices else None
    except OpenAIError as e:
        logger.error("Hint request failed: %s", e)
        return UNAVAILABLE_MESSAGE
    except Exception:
        logger.exception("Unexpected failure while requesting a hint")
        return UNAVAILABLE_MESSAGE

    return text.strip() if text and text.strip() else EMPTY_HINT_MESSAGE
