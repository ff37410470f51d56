#!/usr/bin/env python3
"""
Ask Question launcher.

Usage:
    python main.py

Reads one question from the console, asks Gemini and prints the answer.
Requires GEMINI_API_KEY in the environment or in a .env file.
"""

import os
import sys
import logging
from pathlib import Path

from dotenv import load_dotenv

from core.config_loader import ConfigError, ConfigLoader
from core.llm_service import CompletionClient, LLMService
from core.logger import LogManager, init_logger
from core.prompt_builder import PromptBuilder

BASE_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = BASE_DIR / "config" / "config.yaml"


def setup_logging(config):
    """Initialize logging from the 'logging' section of the config."""
    log_config = config.get("logging") or {}
    level = logging.getLevelName(str(log_config.get("level", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    init_logger(
        log_level=level,
        log_file=log_config.get("file"),
        shell_output=bool(log_config.get("shell_output", False)),
    )
    log_manager = LogManager()
    log_manager.apply_levels(log_config.get("levels"))
    logging.getLogger("app.prompt").info(f"Log levels: {log_manager.get_status()}")
    return log_manager


def build_service(config_loader):
    """
    Create the LLM service from the loaded configuration.

    Raises:
        ConfigError: On missing credentials or an unusable template
    """
    client_config = config_loader.client_config()
    template_path = config_loader.template_path()

    prompt_builder = PromptBuilder(str(template_path) if template_path else None)
    prompt_builder.load()

    return LLMService(
        prompt_builder=prompt_builder,
        client=CompletionClient(client_config),
        logger=logging.getLogger("app.prompt"),
    )


def main():
    """Entry point."""
    # Load environment variables
    load_dotenv()

    # Silent until the configured handlers are installed
    init_logger(log_file=None)

    config_path = os.getenv("ASK_CONFIG") or DEFAULT_CONFIG_PATH
    config_loader = ConfigLoader(config_path)

    try:
        config = config_loader.load()
        setup_logging(config)
        llm_service = build_service(config_loader)
    except ConfigError as e:
        logging.getLogger("app.prompt").error(f"Configuration error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logging.getLogger("app.prompt").info(
        f"Starting with model={llm_service.client.config.model}"
    )

    from adapters.cli_ptk import run_once
    run_once(llm_service)


if __name__ == "__main__":
    main()
