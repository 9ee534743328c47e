"""
Outbound port for template lookup.
"""

from abc import ABC, abstractmethod

from ..models import Template


class TemplateStore(ABC):
    """Resolves a template code to its template definition."""

    @abstractmethod
    def get(self, template_code: str) -> Template | None:
        """
        Look up a template.

        Args:
            template_code: Code named by the send request

        Returns:
            Template if known, None otherwise
        """
        ...
