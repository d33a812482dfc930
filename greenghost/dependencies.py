# greenghost/dependencies.py
"""FastAPI providers for the services layer. Tests override these."""
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from greenghost.config import settings
from greenghost.database import get_db
from greenghost.services.campaigns import CampaignSender
from greenghost.services.email_templates import SystemTemplateStore, TemplateRenderer, TemplateService
from greenghost.services.mailer import Mailer, get_mailer
from greenghost.services.signup import SignupReconciler


@lru_cache()
def get_template_store() -> SystemTemplateStore:
    return SystemTemplateStore(settings.TEMPLATE_DIR, settings)


@lru_cache()
def get_renderer() -> TemplateRenderer:
    return TemplateRenderer(settings.TEMPLATE_DIR)


def get_template_service(
    db: Session = Depends(get_db),
    store: SystemTemplateStore = Depends(get_template_store),
) -> TemplateService:
    return TemplateService(db, store)


def get_signup_reconciler(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    store: SystemTemplateStore = Depends(get_template_store),
    renderer: TemplateRenderer = Depends(get_renderer),
) -> SignupReconciler:
    return SignupReconciler(db, mailer, store, renderer)


def get_campaign_sender(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    renderer: TemplateRenderer = Depends(get_renderer),
) -> CampaignSender:
    return CampaignSender(db, mailer, renderer)
