import logging
from jinja2 import Environment, FileSystemLoader, Template, TemplateError
from pathlib import Path
from typing import Optional

from core.config_loader import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "you are an expert in everythings now tell me about {{ user_input }}"


class PromptBuilder:
    """Builds the prompt from a Jinja2 template and the user's text."""

    def __init__(self, template_path: Optional[str] = None):
        self.template_path = Path(template_path) if template_path else None
        self.template: Optional[Template] = None
        if self.template_path is not None:
            self.env = Environment(loader=FileSystemLoader(self.template_path.parent))
        else:
            self.env = Environment()

    def load(self) -> Template:
        """Load the template from file, or the built-in one when no file is set."""
        if self.template_path is None:
            self.template = self.env.from_string(DEFAULT_TEMPLATE)
            return self.template

        if not self.template_path.exists():
            raise ConfigError(f"Template file not found: {self.template_path}")

        try:
            self.template = self.env.get_template(self.template_path.name)
        except TemplateError as e:
            raise ConfigError(f"Invalid template {self.template_path}: {e}") from e

        logger.debug(f"Loaded prompt template: {self.template_path}")
        return self.template

    def build(self, user_text: str) -> str:
        """
        Render the prompt for the given user text.

        The text is passed as a template variable, so it is inserted verbatim
        and never evaluated as template syntax.

        Args:
            user_text: Line entered by the user, possibly empty

        Returns:
            Rendered prompt string
        """
        if self.template is None:
            self.load()

        return self.template.render(user_input=user_text)
