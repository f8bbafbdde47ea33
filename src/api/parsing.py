# api/parsing.py

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from fastapi import Request, Response
from fastapi.routing import APIRoute


# ─────────────────────────────────────────
# DATES
# Le cœur travaille en heure locale naïve.
# "2026-10-25T10:00:00Z" → heure locale équivalente, sans tzinfo
# ─────────────────────────────────────────

def naive_local(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# ─────────────────────────────────────────
# MONTANTS
# json.loads standard transforme 12345678901234567.89 en float
# avant pydantic. Ici les nombres décimaux arrivent en Decimal.
# ─────────────────────────────────────────

class DecimalJSONRequest(Request):

    async def json(self) -> Any:
        if not hasattr(self, "_json"):
            body = await self.body()
            self._json = json.loads(body, parse_float=Decimal)
        return self._json


class DecimalJSONRoute(APIRoute):
    """Routes dont le corps JSON porte des montants : APIRouter(route_class=...)."""

    def get_route_handler(self) -> Callable:
        original_handler = super().get_route_handler()

        async def handler(request: Request) -> Response:
            return await original_handler(DecimalJSONRequest(request.scope, request.receive))

        return handler
