"""
Template engine for notification bodies.

Renders a SendRequest into a Message using Jinja2 with strict undefined
handling, so a missing variable fails the render instead of producing
blank text on the wire.
"""

from uuid import uuid4

import structlog
from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, UndefinedError, meta

from ...domain.errors import (
    MissingVariable,
    RecipientNotFound,
    TemplateNotFound,
    TemplateRenderError,
)
from ...domain.models import Message, SendRequest, Template
from ...domain.ports import TemplateStore, UserDirectory

logger = structlog.get_logger()


class TemplateEngine:
    """
    Renders send requests into channel-ready messages.

    Depends on the TemplateStore and UserDirectory ports; it performs
    lookups only and has no other side effects.
    """

    def __init__(self, templates: TemplateStore, users: UserDirectory) -> None:
        """
        Initialize with injected lookups.

        Args:
            templates: Resolves template codes to template definitions
            users: Resolves user ids to per-channel destination addresses
        """
        self._templates = templates
        self._users = users
        self._env = Environment(
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )

    def render(self, request: SendRequest) -> Message:
        """
        Render a request into a Message.

        Raises:
            TemplateNotFound: If the template code is unknown
            MissingVariable: If a placeholder has no matching variable
            TemplateRenderError: If the template source is invalid
            RecipientNotFound: If the user has no address on the channel
        """
        template = self._templates.get(request.template_code)
        if template is None:
            raise TemplateNotFound(request.template_code)

        variables = dict(request.variables)
        self._check_variables(template, variables)

        body = self._render_source(template.code, template.body, variables)
        headers = {"X-Template-Code": template.code}
        if template.subject:
            headers["Subject"] = self._render_source(template.code, template.subject, variables)

        to = self._users.resolve_address(request.user_id, request.preferred_channel)
        if not to:
            raise RecipientNotFound(request.user_id, request.preferred_channel.value)

        message = Message(
            id=uuid4(),
            channel=request.preferred_channel,
            to=to,
            body=body,
            headers=headers,
        )
        logger.debug(
            "Rendered message",
            template_code=template.code,
            message_id=str(message.id),
            channel=message.channel.value,
        )
        return message

    def required_variables(self, template: Template) -> set[str]:
        """Return every free variable referenced by the template body and subject."""
        names: set[str] = set()
        for source in (template.body, template.subject):
            if source:
                names |= meta.find_undeclared_variables(self._parse(template.code, source))
        return names

    def _check_variables(self, template: Template, variables: dict[str, str]) -> None:
        missing = sorted(self.required_variables(template) - variables.keys())
        if missing:
            raise MissingVariable(missing[0], missing)

    def _parse(self, code: str, source: str):
        try:
            return self._env.parse(source)
        except TemplateSyntaxError as e:
            raise TemplateRenderError(f"Template {code} is invalid: {e}") from e

    def _render_source(self, code: str, source: str, variables: dict[str, str]) -> str:
        try:
            return self._env.from_string(source).render(variables)
        except UndefinedError as e:
            # e.g. attribute access on a variable that is present but lacks the attribute
            raise MissingVariable(str(e)) from e
        except TemplateSyntaxError as e:
            raise TemplateRenderError(f"Template {code} is invalid: {e}") from e
