"""
Core dependencies for route protection and template access checks
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from helmdesigner.database.supabase_client import get_supabase
from helmdesigner.modules.auth.service import AuthService
from helmdesigner.modules.templates.schemas import Template
from supabase import Client
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def is_super_user(user_data: dict) -> bool:
    """Check if user is a super user from app_metadata"""
    # app_metadata is set server-side and cannot be modified by users
    app_metadata = user_data.get("app_metadata") or {}
    return app_metadata.get("type") == "super_user"


def check_template_access(template: Template, user_data: dict) -> dict:
    """Allow the owner, anyone for public templates, or a super user"""
    if is_super_user(user_data):
        return user_data
    if template.user_id == user_data["id"]:
        return user_data
    if template.visibility == "public":
        return user_data
    logger.info(f"User {user_data['id']} denied access to template {template.id}")
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You must own this template or it must be public to access it"
    )
