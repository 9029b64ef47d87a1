"""Requester identity, forwarded by the session layer in front of the service."""

from fastapi import Depends, Header, HTTPException

from storefront.access.download import ADMIN_ROLE, Requester


def optional_requester(
    x_user_id: str = Header(default=""),
    x_user_email: str = Header(default=""),
    x_user_role: str = Header(default="customer"),
) -> Requester | None:
    if not x_user_id:
        return None
    return Requester(user_id=x_user_id, email=x_user_email or None, role=x_user_role or "customer")


def current_requester(requester: Requester | None = Depends(optional_requester)) -> Requester:
    if requester is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return requester


def admin_requester(requester: Requester = Depends(current_requester)) -> Requester:
    if requester.role != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="Admin role required")
    return requester
