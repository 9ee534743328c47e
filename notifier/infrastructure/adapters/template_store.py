"""Template store adapters."""

from pathlib import Path

import structlog

from ...domain.models import Template
from ...domain.ports import TemplateStore

logger = structlog.get_logger()

DEFAULT_TEMPLATES: tuple[Template, ...] = (
    Template(
        code="WELCOME_EMAIL",
        subject="Welcome, {{ firstName }}!",
        body="Hi {{ firstName }},\n\nThanks for signing up. We're glad to have you.\n",
    ),
    Template(
        code="OTP_SMS",
        body="Your verification code is {{ code }}. It expires in {{ ttlMinutes }} minutes.",
    ),
    Template(
        code="ORDER_SHIPPED_PUSH",
        body="Order {{ orderId }} is on its way!",
    ),
)


class InMemoryTemplateStore(TemplateStore):
    """Template store backed by a dict. Useful for tests and local runs."""

    def __init__(self, templates: list[Template] | tuple[Template, ...] = ()) -> None:
        self._templates: dict[str, Template] = {}
        for template in templates:
            self.add(template)

    def add(self, template: Template) -> None:
        self._templates[template.code] = template

    def get(self, template_code: str) -> Template | None:
        return self._templates.get(template_code)

    def __len__(self) -> int:
        return len(self._templates)


class FileSystemTemplateStore(TemplateStore):
    """
    Loads templates from a directory.

    Layout: `<root>/<CODE>.txt` holds the body and an optional
    `<root>/<CODE>.subject.txt` holds the subject line.
    """

    BODY_SUFFIX = ".txt"
    SUBJECT_SUFFIX = ".subject.txt"

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        if not self._root.is_dir():
            raise ValueError(f"Template directory does not exist: {self._root}")

    def get(self, template_code: str) -> Template | None:
        # Template codes are plain names; never let one escape the root
        if not template_code or Path(template_code).name != template_code:
            logger.warning("Rejected template code", template_code=template_code)
            return None

        body_path = self._root / f"{template_code}{self.BODY_SUFFIX}"
        if not body_path.is_file():
            return None

        subject_path = self._root / f"{template_code}{self.SUBJECT_SUFFIX}"
        subject = None
        if subject_path.is_file():
            subject = subject_path.read_text(encoding="utf-8").strip()

        return Template(
            code=template_code,
            body=body_path.read_text(encoding="utf-8"),
            subject=subject,
        )
