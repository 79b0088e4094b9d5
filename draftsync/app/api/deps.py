"""FastAPI dependencies."""

from fastapi import Request

from draftsync.app.bootstrap import Services


def get_services(request: Request) -> Services:
    """Services built at application startup."""
    services: Services = request.app.state.services
    return services
