"""
FastAPI dependency providers for the external collaborators.

The lifespan handler in app.main builds each collaborator once and parks it
on app.state; handlers receive them through Depends so tests can swap them
with app.dependency_overrides.
"""
from fastapi import Depends, Request

from app.core.database import DocumentStore
from app.core.security import IdentityProvider
from app.services.email_service import EmailService
from app.services.feed_service import FeedService
from app.services.otp_service import OtpService
from app.services.otp_store import OtpStore


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_otp_store(request: Request) -> OtpStore:
    return request.app.state.otp_store


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_otp_service(
    store: OtpStore = Depends(get_otp_store),
    identity: IdentityProvider = Depends(get_identity_provider),
    email_service: EmailService = Depends(get_email_service),
) -> OtpService:
    return OtpService(store, identity, email_service)


def get_feed_service(store: DocumentStore = Depends(get_document_store)) -> FeedService:
    return FeedService(store)
