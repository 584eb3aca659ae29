"""Prompt fragments appended to a request when a structured reply is retried.

Kept apart from the controller so the wording can be tuned without touching
retry bookkeeping.
"""

from __future__ import annotations

RETRY_HEADER_TMPL = "\n\n[Retry attempt {attempt}/{max_attempts}, {remaining} remaining]\n"

ERROR_MESSAGES = {
    "json_parsing_failed": (
        "Your previous response was not valid JSON. Error: {error}\n"
        "Respond with valid JSON only, exactly matching the requested schema."
    ),
    "schema_validation_failed": (
        "Your previous response did not match the schema. {error}\n"
        "Make sure every required field is present and has the correct type."
    ),
    "empty_response": "Your previous response was empty. Provide a valid JSON response.",
}

DEFAULT_ERROR_MESSAGE = "Please try again with a valid JSON response matching the schema."

FAILED_CONTENT_TMPL = "\nPrevious response (excerpt):\n{excerpt}\n"
