import logging

from views.entity_views import build_views
from views.presenter import ViewResult

log = logging.getLogger(__name__)

DEFAULT_ROUTE = '#dashboard'


class Router:
    """Maps URL hash routes such as '#tenants' to views; unknown routes show the dashboard."""

    def __init__(self, views: dict, default_route: str = DEFAULT_ROUTE):
        self.views = {f"#{name}": view for name, view in views.items()}
        self.default_route = default_route

    @property
    def routes(self) -> list:
        return list(self.views)

    def resolve(self, route: str) -> str:
        normalized = (route or '').strip().lower()
        if normalized and not normalized.startswith('#'):
            normalized = f"#{normalized}"
        if normalized not in self.views:
            if normalized:
                log.info(f"Unknown route '{route}', showing {self.default_route}.")
            return self.default_route
        return normalized

    def view_for(self, route: str):
        return self.views[self.resolve(route)]

    def render(self, route: str, query: str = None) -> str:
        return self.view_for(route).render(query)

    def dispatch(self, route: str, action: str, payload: dict = None) -> ViewResult:
        return self.view_for(route).dispatch(action, payload)


def build_router(context) -> Router:
    return Router(build_views(context))
