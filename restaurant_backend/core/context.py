# core/context.py

"""
OPERATION CONTEXT

Every engine command receives the acting employee and shop explicitly.
Nothing in the engine reads "the current user" from global state.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OperationContext:
    employee_id: int | None = None
    shop_id: int | None = None

    @classmethod
    def system(cls) -> "OperationContext":
        return cls(employee_id=None, shop_id=None)

    @classmethod
    def from_request(cls, request) -> "OperationContext":
        user = getattr(request, "user", None)
        employee_id = getattr(user, "pk", None) if getattr(user, "is_authenticated", False) else None

        raw_shop = request.headers.get("X-Shop-Id") if hasattr(request, "headers") else None
        shop_id = int(raw_shop) if raw_shop and str(raw_shop).isdigit() else None

        return cls(employee_id=employee_id, shop_id=shop_id)
