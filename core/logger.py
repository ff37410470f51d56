import logging
import sys
import os
from logging.handlers import RotatingFileHandler


class OneLineExceptionFormatter(logging.Formatter):
    """Format exceptions on a single line for cleaner logs."""

    def formatException(self, exc_info):
        result = super().formatException(exc_info)
        return repr(result)

    def format(self, record):
        result = super().format(record)
        if record.exc_text:
            result = result.replace("\n", " | ")
        return result


def init_logger(
    log_level=logging.INFO,
    log_file="logs/ask.log",
    file_size=2 * 1024 * 1024,
    file_count=2,
    shell_output=False,
    log_file_mode="a",
    log_format="%(asctime)s %(levelname)s %(name)s %(funcName)s(%(lineno)d) %(message)s",
):
    """
    Initialize root logger with rotating file handler and optional stdout output.

    Args:
        log_level: Logging level (default: INFO)
        log_file: Path to log file, or None to skip the file handler
        file_size: Max size per log file in bytes
        file_count: Number of backup files to keep
        shell_output: Whether to also output to stdout
        log_file_mode: File mode ('a' for append, 'w' for overwrite)
        log_format: Log message format string

    Returns:
        Configured root logger
    """
    main_logger = logging.getLogger()
    main_logger.setLevel(log_level)
    log_formatter = OneLineExceptionFormatter(log_format)

    # Clear existing handlers to prevent duplicates
    main_logger.handlers = []

    if log_file:
        try:
            log_dir = os.path.dirname(os.path.abspath(log_file))
            os.makedirs(log_dir, exist_ok=True)

            log_rotate_handler = RotatingFileHandler(
                log_file,
                mode=log_file_mode,
                maxBytes=file_size,
                backupCount=file_count,
                encoding="utf-8",
            )
            log_rotate_handler.setFormatter(log_formatter)
            log_rotate_handler.setLevel(log_level)
            main_logger.addHandler(log_rotate_handler)
        except OSError as e:
            print(f"Exception when creating file handler: {e}", file=sys.stderr)

    if shell_output:
        stream_log_handler = logging.StreamHandler(stream=sys.stdout)
        stream_log_handler.setFormatter(log_formatter)
        stream_log_handler.setLevel(log_level)
        main_logger.addHandler(stream_log_handler)

    if not main_logger.handlers:
        main_logger.addHandler(logging.NullHandler())

    return main_logger


class LogManager:
    """
    Manages component logger levels with smart hierarchy handling.

    Provides:
    - Curated registry of application components
    - Smart auto-adjustment of root logger when needed
    """

    PRIMARY_COMPONENTS = {
        "prompt": {
            "default": logging.INFO,
            "description": "Application logs (config, prompts, etc.)",
            "loggers": ["app.prompt"]
        },
        "http": {
            "default": logging.WARNING,
            "description": "HTTP request/response logs",
            "loggers": ["openai", "httpx", "httpcore"]
        },
        "langchain": {
            "default": logging.WARNING,
            "description": "LangChain internal processing",
            "loggers": ["langchain", "langchain_core", "langchain_openai"]
        },
    }

    # Third-party libraries to silence by default
    NOISY_DEFAULTS = {
        "asyncio": logging.WARNING,
        "urllib3": logging.WARNING,
        "httpcore.connection": logging.WARNING,
        "httpcore.http11": logging.WARNING,
        "markdown_it": logging.WARNING,
    }

    def __init__(self, root_logger=None):
        self.root_logger = root_logger or logging.getLogger()
        self._component_loggers = {}

        # Apply defaults for primary components
        for component, config in self.PRIMARY_COMPONENTS.items():
            for logger_name in config["loggers"]:
                logger = logging.getLogger(logger_name)
                logger.setLevel(config["default"])
                self._component_loggers.setdefault(component, []).append(logger)

        for logger_name, level in self.NOISY_DEFAULTS.items():
            logging.getLogger(logger_name).setLevel(level)

    def set_level(self, component, level):
        """
        Set log level for a component with smart root adjustment.

        If the target level is lower than root level, automatically adjusts
        root to allow messages through.

        Args:
            component: Component name (e.g., "prompt", "http", "langchain", "all")
            level: Logging level (logging.DEBUG, INFO, WARNING, ERROR)

        Returns:
            tuple: (success: bool, message: str)
        """
        level_name = logging.getLevelName(level)

        if component == "all":
            components_to_set = list(self.PRIMARY_COMPONENTS.keys())
        elif component in self.PRIMARY_COMPONENTS:
            components_to_set = [component]
        else:
            return False, f"Unknown component: {component}"

        root_adjusted = False
        if self.root_logger.level > level:
            self.root_logger.setLevel(level)
            for handler in self.root_logger.handlers:
                handler.setLevel(level)
            root_adjusted = True

        for comp in components_to_set:
            for logger in self._component_loggers.get(comp, []):
                logger.setLevel(level)

        if component == "all":
            msg = f"All components set to {level_name}"
        else:
            msg = f"{component.capitalize()} logs set to {level_name}"

        if root_adjusted:
            msg += f" (root level auto-adjusted to {level_name})"

        return True, msg

    def apply_levels(self, levels):
        """
        Apply a {component: level_name} mapping, e.g. from the config file.

        Unknown components or level names are logged and skipped.
        """
        for component, level_name in (levels or {}).items():
            level = logging.getLevelName(str(level_name).upper())
            if not isinstance(level, int):
                logging.getLogger(__name__).warning(f"Invalid log level for {component}: {level_name}")
                continue
            success, msg = self.set_level(component, level)
            if not success:
                logging.getLogger(__name__).warning(msg)

    def get_status(self):
        """
        Get current log levels for all components.

        Returns:
            dict: {"root": level_name, "components": {component: level_name}}
        """
        status = {
            "root": logging.getLevelName(self.root_logger.level),
            "components": {}
        }

        for component, loggers in self._component_loggers.items():
            if loggers:
                status["components"][component] = logging.getLevelName(loggers[0].level)

        return status
