"""Service-account credentials for the Helm registry.

Helm clients authenticate with an API key sent as ``X-API-Key``, as a bearer
token, or as the password of HTTP Basic auth (``helm repo add --password``).
"""

import base64
import binascii
import logging
from typing import List, Optional

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel
from supabase import Client

from helmdesigner.config import settings
from helmdesigner.database.supabase_client import get_service_supabase

logger = logging.getLogger(__name__)


class ServiceAccount(BaseModel):
    service_account_id: str
    user_id: Optional[str] = None


def _basic_credential(encoded: str) -> Optional[str]:
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, _, password = decoded.partition(":")
    return password or username or None


def extract_api_key(request: Request) -> Optional[str]:
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key.strip() or None
    authorization = request.headers.get("Authorization", "")
    scheme, _, credential = authorization.partition(" ")
    credential = credential.strip()
    if not credential:
        return None
    if scheme.lower() == "bearer":
        return credential
    if scheme.lower() == "basic":
        return _basic_credential(credential)
    return None


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": f'Basic realm="{settings.registry_realm}"'},
    )


class ServiceAccountService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def validate_key(self, api_key: str) -> Optional[ServiceAccount]:
        """Resolve an API key to its service account, or None when the key is unknown or inactive."""
        result = self.supabase.rpc("validate_service_account_key", {"p_api_key": api_key}).execute()
        rows = [r for r in (result.data or []) if r.get("is_valid", True)]
        if not rows:
            return None
        account = ServiceAccount(service_account_id=rows[0]["service_account_id"], user_id=rows[0].get("user_id"))
        try:
            self.supabase.rpc(
                "update_service_account_last_used", {"p_service_account_id": account.service_account_id}
            ).execute()
        except Exception as e:
            logger.warning(f"Failed to update last_used_at for service account {account.service_account_id}: {e}")
        return account

    def has_template_access(self, service_account_id: str, template_id: str) -> bool:
        result = self.supabase.rpc(
            "check_template_access",
            {"p_service_account_id": service_account_id, "p_template_id": template_id},
        ).execute()
        return bool(result.data)

    def accessible_template_ids(self, service_account_id: str) -> List[str]:
        result = self.supabase.table("service_account_template_access")\
            .select("template_id")\
            .eq("service_account_id", service_account_id)\
            .order("created_at", desc=False)\
            .execute()
        ids: List[str] = []
        for row in result.data or []:
            if row["template_id"] not in ids:
                ids.append(row["template_id"])
        return ids


def get_service_account_service(supabase: Client = Depends(get_service_supabase)) -> ServiceAccountService:
    return ServiceAccountService(supabase)


def require_service_account(
    request: Request,
    accounts: ServiceAccountService = Depends(get_service_account_service),
) -> ServiceAccount:
    """Dependency: 401 with a Basic challenge unless the request carries a valid API key."""
    api_key = extract_api_key(request)
    if not api_key:
        raise unauthorized("API key required")
    try:
        account = accounts.validate_key(api_key)
    except Exception as e:
        logger.error(f"Service account validation failed: {e}")
        raise unauthorized("Invalid API key")
    if account is None:
        raise unauthorized("Invalid API key")
    return account
