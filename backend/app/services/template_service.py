# backend/app/services/template_service.py
"""
Template rendering service for the Massava platform.

Provides centralized template rendering using Jinja2 with the common
context every email shares (brand, year, frontend URL).
"""

from datetime import datetime
from decimal import Decimal
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from ..core.config import settings
from ..core.constants import BRAND_NAME
from ..core.exceptions import ServiceException
from .template_registry import TemplateRegistry

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


class TemplateService:
    """
    Centralized template rendering service using Jinja2.

    Autoescaping is on; everything interpolated from user input (names,
    decline reasons) is escaped.
    """

    def __init__(self, template_dir: Optional[Path] = None):
        self.template_dir = template_dir or TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._register_custom_filters()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _register_custom_filters(self) -> None:
        def currency(value: Union[float, Decimal]) -> str:
            """Format a number as euro amount (German notation)."""
            formatted = f"{float(value):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
            return f"{formatted} €"

        self.env.filters["currency"] = currency

    def get_common_context(self) -> Dict[str, Any]:
        return {
            "brand_name": BRAND_NAME,
            "current_year": datetime.now().year,
            "frontend_url": settings.frontend_url,
            "support_email": settings.data_controller_email,
        }

    def render_template(
        self, template_name: Union[TemplateRegistry, str], context: Optional[Dict[str, Any]] = None, **kwargs: Any
    ) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Registry entry or path relative to the templates directory
            context: Template variables (merged over the common context)
            **kwargs: Additional template variables

        Returns:
            Rendered HTML

        Raises:
            ServiceException: If the template does not exist or fails to render
        """
        name = template_name.value if isinstance(template_name, TemplateRegistry) else template_name
        full_context = self.get_common_context()
        if context:
            full_context.update(context)
        full_context.update(kwargs)

        try:
            template = self.env.get_template(name)
            return template.render(**full_context)
        except TemplateNotFound as e:
            self.logger.error(f"Template not found: {name}")
            raise ServiceException(f"Email template not found: {name}") from e
        except Exception as e:
            self.logger.error(f"Error rendering template {name}: {str(e)}")
            raise ServiceException(f"Failed to render template: {str(e)}") from e
