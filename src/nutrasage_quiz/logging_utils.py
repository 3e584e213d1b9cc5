# logging_utils.py
"""
Shared structured logging utilities.

Goal:
- One place to define:
  * Run / execution ID
  * Log line format
  * Module "purposes" in human language

Format (one line per log entry):
<RunId>|<Date>|<Time>|<Level>|<File:Line>|<Module.Func>|<ModulePurpose>|
<InvokingFunc>|<InvokingFuncPurpose>|<Detail>|<NextStep>|<Resolution>|<END>
"""

from __future__ import annotations

import datetime
import logging
import os
import uuid
from typing import Dict, Optional

RUN_ID: str = uuid.uuid4().hex[:8]


def _log(
    level: int,
    message: str,
    *,
    invoking_function: str = "",
    invoking_purpose: str = "",
    next_step: str = "",
    resolution: str = "",
    exc: Optional[BaseException] = None,
) -> None:
    if exc is not None:
        message = f"{message} | EXC={exc!r}"
    get_logger("nutrasage_quiz").log(
        level,
        message,
        extra={
            "invoking_func": invoking_function,
            "invoking_purpose": invoking_purpose,
            "next_step": next_step,
            "resolution": resolution,
        },
        stacklevel=3,
    )


def log_error(message: str, *, exc: Optional[BaseException] = None, **kwargs) -> None:
    _log(logging.ERROR, message, exc=exc, **kwargs)


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter that emits a single '|' separated line conforming
    to the log template above.
    """

    # High-level purposes by module name
    MODULE_PURPOSES: Dict[str, str] = {
        "repository": "Read/write quiz reference data and responses in Supabase",
        "tag_extractor": "Resolve quiz answers to option tags",
        "rule_matcher": "Select the answer_key rule that best matches a tag set",
        "fallback": "Resolve products and guarantee a non-empty recommendation",
        "recommender": "Answer -> product recommendation orchestration",
        "questions": "Load active quiz questions and validate answers",
        "progressive_save": "Save a quiz session step by step while it is answered",
        "submission": "Validate and persist a completed quiz in one call",
        "results": "Reload saved quiz results by result id",
        "seed": "Seed core health tags into Supabase",
        "rules": "Author answer_key rules with normalized tag keys",
        "report": "Aggregate quiz responses for the admin report",
        "cleanup": "Remove duplicate quiz responses per contact",
        "recommendation_example": "CLI demo of the recommender",
        "config": "Create Supabase client using environment variables",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        """Format log record into structured pipe-delimited format."""
        dt = datetime.datetime.fromtimestamp(record.created)
        date_str = dt.strftime("%Y-%m-%d")
        time_str = dt.strftime("%H:%M:%S")

        run_id = getattr(record, "run_id", RUN_ID)

        level = record.levelname
        code_location = f"{record.filename}:{record.lineno}"
        func_name = record.funcName
        module_name = record.module
        module_purpose = self.MODULE_PURPOSES.get(module_name, "")

        # Optional extra context supplied via logger calls
        invoking_func = getattr(record, "invoking_func", "")
        invoking_purpose = getattr(record, "invoking_purpose", "")
        next_step = getattr(record, "next_step", "")
        resolution = getattr(record, "resolution", "")

        detail = record.getMessage()

        return (
            f"{run_id}|{date_str}|{time_str}|{level}|{code_location}|"
            f"{module_name}.{func_name}|{module_purpose}|"
            f"{invoking_func}|{invoking_purpose}|"
            f"{detail}|{next_step}|{resolution}|<END>"
        )


def init_logging(level: Optional[int] = None) -> None:
    """
    Initialize root logger once with our StructuredFormatter.

    Call get_logger() from modules instead of calling logging.basicConfig()
    everywhere, so configuration stays central.
    """
    root = logging.getLogger()
    if root.handlers:
        # Already configured (pytest, REPL, host app): avoid double handlers
        return

    if level is None:
        level = logging.getLevelName(os.environ.get("QUIZ_LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.setLevel(level)

    # supabase-py logs every HTTP request at INFO through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger configured with structured formatting.

    Usage:
        logger = get_logger("tag_extractor")
        logger.info(
            "Something happened",
            extra={
                "invoking_func": "some_function",
                "invoking_purpose": "High-level purpose",
                "next_step": "What happens next",
                "resolution": "How to fix if error",
            },
        )
    """
    init_logging()
    return logging.getLogger(name)
