"""
Logging framework for the travel deck pipeline.

This module configures loguru for the application and provides a small
pipeline-aware logger used around text-generation calls.
"""

import json
import os
import sys
from typing import Any

from loguru import logger

from travel_deck.config import LogLevel

# Prompts and replies are clipped to this many characters in debug logs
LLM_LOG_PREVIEW_CHARS = 500


def get_logger(name: str):
    """
    Get a logger instance for the specified module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Configured logger instance with the module name attached
    """
    return logger.bind(name=name)


def setup_logging(
    log_level: LogLevel | str = LogLevel.INFO, log_file: str | None = None
):
    """
    Set up the logging configuration for the application.

    Args:
        log_level: The logging level to use (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to
    """
    if isinstance(log_level, str):
        log_level = LogLevel(log_level.upper())

    logger.remove()

    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        level=log_level.value,
        colorize=True,
    )

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        logger.add(
            log_file,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                "{name}:{function}:{line} - {message}"
            ),
            level=log_level.value,
            rotation="10 MB",
            compression="zip",
        )

    logger.info(f"Logging initialized with level {log_level.value}")


class PipelineLogger:
    """
    Logger bound to one pipeline stage and card type, used to trace
    text-generation traffic without flooding the log with full prompts.
    """

    def __init__(self, stage: str, card_type: str | None = None):
        """
        Initialize the pipeline logger.

        Args:
            stage: Pipeline stage name, e.g. ``generator``
            card_type: Card type the logger reports on (optional)
        """
        self.stage = stage
        self.card_type = card_type
        self.logger = logger.bind(stage=stage, card_type=card_type)

    def debug(self, message: str, **kwargs):
        """Log a debug message with pipeline context."""
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log an info message with pipeline context."""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log a warning message with pipeline context."""
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log an error message with pipeline context."""
        self.logger.error(message, **kwargs)

    def log_llm_input(
        self, model: str, system_prompt: str, user_prompt: str, temperature: float
    ):
        """
        Log input to a language model.

        Args:
            model: Name of the model
            system_prompt: System instruction sent with the request
            user_prompt: User prompt sent with the request
            temperature: Temperature setting
        """
        self.debug(
            f"LLM Request: {model} - Temperature: {temperature} - "
            f"{len(system_prompt) + len(user_prompt)} chars",
            model=model,
            temperature=temperature,
            prompt=self._preview(user_prompt),
        )

    def log_llm_output(self, model: str, response: Any):
        """
        Log output from a language model.

        Args:
            model: Name of the model
            response: Model response
        """
        self.debug(
            f"LLM Response: {model}",
            model=model,
            response=self._preview(response),
        )

    def _preview(self, obj: Any) -> str | None:
        if obj is None:
            return None
        if not isinstance(obj, str):
            try:
                obj = json.dumps(obj, default=str, ensure_ascii=False)
            except (TypeError, ValueError) as e:
                self.warning(f"Failed to serialize object to JSON: {e!s}")
                obj = str(obj)
        if len(obj) <= LLM_LOG_PREVIEW_CHARS:
            return obj
        return obj[:LLM_LOG_PREVIEW_CHARS] + "..."
