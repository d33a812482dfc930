# greenghost/services/email_templates.py
"""
Email templates come in two kinds:

* system templates (welcome, verification) live as Jinja2 files in the
  template directory and only allow their subject and body to be edited;
* custom templates are ``EmailTemplate`` rows managed from the admin portal.

Routes address them with a ``TemplateRef``: ``system:<name>`` or the row id.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
import os
import logging

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from greenghost.errors import TemplateNotFoundError, TemplateConflictError, ValidationFailed
from greenghost.models.email_template import EmailTemplate

logger = logging.getLogger(__name__)

SYSTEM_PREFIX = "system:"
RECIPIENT_TYPES = ("all", "waitlist", "custom", "zip")
REQUIRED_FIELDS = ("name", "subject", "html_content", "recipient_type", "is_active")


@dataclass(frozen=True)
class SystemTemplateRef:
    name: str

    def __str__(self):
        return f"{SYSTEM_PREFIX}{self.name}"


@dataclass(frozen=True)
class CustomTemplateRef:
    id: int

    def __str__(self):
        return str(self.id)


TemplateRef = Union[SystemTemplateRef, CustomTemplateRef]


def parse_template_ref(raw: str) -> TemplateRef:
    raw = (raw or "").strip()
    if raw.startswith(SYSTEM_PREFIX):
        name = raw[len(SYSTEM_PREFIX):]
        if name not in SYSTEM_TEMPLATES:
            raise TemplateNotFoundError(f"Unknown system template '{name}'")
        return SystemTemplateRef(name)
    if raw.isdigit():
        return CustomTemplateRef(int(raw))
    raise ValidationFailed(f"Invalid template ID '{raw}'")


@dataclass(frozen=True)
class SystemTemplateDef:
    title: str
    filename: str
    default_subject: str
    from_setting: str


SYSTEM_TEMPLATES: Dict[str, SystemTemplateDef] = {
    "welcome": SystemTemplateDef(
        title="Welcome",
        filename="welcome.html",
        default_subject="Welcome to GreenGhost's Waitlist!",
        from_setting="WELCOME_FROM",
    ),
    "verification": SystemTemplateDef(
        title="Verification",
        filename="verification.html",
        default_subject="Your GreenGhost Verification Code",
        from_setting="VERIFICATION_FROM",
    ),
}


@dataclass
class SystemTemplate:
    name: str
    title: str
    subject: str
    html_content: str
    from_email: str
    recipient_type: str = "waitlist"
    recipient_filter: Optional[dict] = None
    is_active: bool = True
    kind: str = "system"

    @property
    def ref(self) -> SystemTemplateRef:
        return SystemTemplateRef(self.name)


@dataclass
class CustomTemplate:
    row: EmailTemplate
    kind: str = "custom"

    @property
    def ref(self) -> CustomTemplateRef:
        return CustomTemplateRef(self.row.id)

    @property
    def name(self) -> str:
        return self.row.name

    @property
    def subject(self) -> str:
        return self.row.subject

    @property
    def html_content(self) -> str:
        return self.row.html_content

    @property
    def from_email(self) -> Optional[str]:
        return self.row.from_email

    @property
    def recipient_type(self) -> str:
        return self.row.recipient_type

    @property
    def recipient_filter(self) -> Optional[dict]:
        return self.row.recipient_filter

    @property
    def is_active(self) -> bool:
        return self.row.is_active


Template = Union[SystemTemplate, CustomTemplate]


class SystemTemplateStore:
    """File-backed system templates. Subject overrides sit next to the body as ``<name>.subject``."""

    def __init__(self, template_dir: str, settings):
        self.template_dir = template_dir
        self.settings = settings

    def _path(self, filename: str) -> str:
        return os.path.join(self.template_dir, filename)

    def get(self, name: str) -> SystemTemplate:
        definition = SYSTEM_TEMPLATES.get(name)
        if definition is None:
            raise TemplateNotFoundError(f"Unknown system template '{name}'")

        with open(self._path(definition.filename), encoding="utf-8") as f:
            html_content = f.read()

        subject = definition.default_subject
        subject_path = self._path(f"{name}.subject")
        if os.path.exists(subject_path):
            with open(subject_path, encoding="utf-8") as f:
                subject = f.read().strip() or subject

        return SystemTemplate(
            name=name,
            title=definition.title,
            subject=subject,
            html_content=html_content,
            from_email=getattr(self.settings, definition.from_setting),
        )

    def all(self) -> List[SystemTemplate]:
        return [self.get(name) for name in SYSTEM_TEMPLATES]

    def update(self, name: str, subject: Optional[str] = None, html_content: Optional[str] = None) -> SystemTemplate:
        definition = SYSTEM_TEMPLATES[name]
        if html_content is not None:
            with open(self._path(definition.filename), "w", encoding="utf-8") as f:
                f.write(html_content)
        if subject is not None:
            with open(self._path(f"{name}.subject"), "w", encoding="utf-8") as f:
                f.write(subject)
        logger.info(f"System template '{name}' updated")
        return self.get(name)


class TemplateRenderer:
    """Wraps template bodies in the shared ``base.html`` layout."""

    def __init__(self, template_dir: str):
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template: Template, context: Optional[Dict[str, Any]] = None) -> str:
        content = template.html_content
        if template.kind == "system":
            content = self.env.from_string(content).render(**(context or {}))
        return self.env.get_template("base.html").render(title=template.subject, content=content)


class TemplateService:
    """Lookup and CRUD across both template kinds."""

    def __init__(self, db: Session, store: SystemTemplateStore):
        self.db = db
        self.store = store

    def list_all(self) -> List[Template]:
        rows = self.db.query(EmailTemplate).order_by(EmailTemplate.created_at.desc()).all()
        return [*self.store.all(), *(CustomTemplate(row) for row in rows)]

    def get(self, ref: TemplateRef) -> Template:
        if isinstance(ref, SystemTemplateRef):
            return self.store.get(ref.name)
        row = self.db.query(EmailTemplate).filter(EmailTemplate.id == ref.id).first()
        if row is None:
            raise TemplateNotFoundError(f"Template {ref.id} not found")
        return CustomTemplate(row)

    def create(self, data: Dict[str, Any]) -> CustomTemplate:
        _check_recipient_type(data.get("recipient_type"))
        self._check_name_free(data.get("name"))
        row = EmailTemplate(**data)
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise TemplateConflictError(f"A template named '{data.get('name')}' already exists")
        self.db.refresh(row)
        logger.info(f"Email template created: {row.id} ({row.name})")
        return CustomTemplate(row)

    def update(self, ref: TemplateRef, changes: Dict[str, Any]) -> Template:
        cleared = sorted(f for f in REQUIRED_FIELDS if f in changes and changes[f] is None)
        if cleared:
            raise ValidationFailed(f"{', '.join(cleared)} cannot be null")

        if isinstance(ref, SystemTemplateRef):
            extra = set(changes) - {"subject", "html_content"}
            if extra:
                raise ValidationFailed(
                    f"System templates only allow subject and html_content edits (got {', '.join(sorted(extra))})"
                )
            return self.store.update(ref.name, changes.get("subject"), changes.get("html_content"))

        template = self.get(ref)
        if "recipient_type" in changes:
            _check_recipient_type(changes["recipient_type"])
        if "name" in changes:
            self._check_name_free(changes["name"], exclude_id=template.row.id)
        for field, value in changes.items():
            setattr(template.row, field, value)
        template.row.updated_at = datetime.utcnow()
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if "name" in changes:
                raise TemplateConflictError(f"A template named '{changes['name']}' already exists")
            raise
        self.db.refresh(template.row)
        return template

    def delete(self, ref: TemplateRef) -> None:
        if isinstance(ref, SystemTemplateRef):
            raise ValidationFailed("System templates cannot be deleted")
        template = self.get(ref)
        self.db.delete(template.row)
        self.db.commit()
        logger.info(f"Email template deleted: {ref}")

    def _check_name_free(self, name: Optional[str], exclude_id: Optional[int] = None):
        query = self.db.query(EmailTemplate.id).filter(EmailTemplate.name == name)
        if exclude_id is not None:
            query = query.filter(EmailTemplate.id != exclude_id)
        if query.first() is not None:
            raise TemplateConflictError(f"A template named '{name}' already exists")


def _check_recipient_type(recipient_type: Optional[str]):
    if recipient_type is not None and recipient_type not in RECIPIENT_TYPES:
        raise ValidationFailed(f"recipient_type must be one of {', '.join(RECIPIENT_TYPES)}")
