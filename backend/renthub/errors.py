from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class AppError(Exception):
    status_code: int
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    retryable: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return error_response(self.code, self.message, self.details, retryable=self.retryable)


def error_response(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    *,
    retryable: Optional[bool] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "code": code,
        "message": message,
        "details": details or {},
    }
    if retryable is not None:
        payload["retryable"] = retryable
    return {"message": message, "error": payload}


# ---------------------------------------------------------------------------
# Taxonomy helpers
# ---------------------------------------------------------------------------


def not_found(entity: str, entity_id: str) -> AppError:
    return AppError(
        404,
        f"{entity}_not_found",
        f"{entity.capitalize()} not found",
        {f"{entity}_id": entity_id},
    )


def invalid_state(code: str, message: str, *, status_code: int = 409, **details: Any) -> AppError:
    return AppError(status_code, code, message, dict(details))


def owner_mismatch(owner_id: str, to: str) -> AppError:
    return AppError(
        400,
        "owner_mismatch",
        "Owner mismatch for booking",
        {"owner_id": owner_id, "to": to},
    )


def reserved_account_id(account_id: str) -> AppError:
    return AppError(
        400,
        "reserved_account_id",
        "Account id collides with an API route",
        {"account_id": account_id},
    )


def signature_mismatch() -> AppError:
    return AppError(400, "invalid_payment_signature", "Invalid payment signature")


def upstream_gateway_error(message: str, **details: Any) -> AppError:
    return AppError(502, "payment_gateway_error", message, dict(details), retryable=True)
