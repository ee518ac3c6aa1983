from __future__ import annotations

from fastapi.routing import APIRoute
from starlette.requests import Request

from app.request_context import client_ip_of, current_client_ip, current_endpoint


class EndpointNameRoute(APIRoute):
    """Tags each request with its route label and caller IP for downstream log lines."""

    def get_route_handler(self):
        original_handler = super().get_route_handler()

        async def custom_handler(request: Request):
            endpoint_token = current_endpoint.set(f"{request.method} {self.path}")
            ip_token = current_client_ip.set(client_ip_of(request))
            try:
                return await original_handler(request)
            finally:
                current_client_ip.reset(ip_token)
                current_endpoint.reset(endpoint_token)

        return custom_handler
