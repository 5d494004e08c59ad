"""Helper functions for testing logging."""

from __future__ import annotations

import json
from typing import Any

from _pytest.logging import LogCaptureFixture

from ldaplogin.constants import LOGGER_NAME

__all__ = ["parse_log"]


def parse_log(caplog: LogCaptureFixture) -> list[dict[str, Any]]:
    """Parse the ldaplogin log messages as JSON.

    Messages from other loggers are ignored. The timestamp is checked for
    presence and removed, since it differs on every run.

    Parameters
    ----------
    caplog
        The log capture fixture.

    Returns
    -------
    list of dict
        Parsed JSON of each ldaplogin log message, without the logger name
        and timestamp.
    """
    messages = []
    for name, _, text in caplog.record_tuples:
        if name != LOGGER_NAME:
            continue
        message = json.loads(text)
        assert message.pop("logger") == LOGGER_NAME
        assert message.pop("timestamp")
        messages.append(message)
    return messages
