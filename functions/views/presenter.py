# functions/views/presenter.py

import logging
from typing import NamedTuple, Callable

from utils.errors import RentDeskError

log = logging.getLogger(__name__)


class ViewResult(NamedTuple):
    html: str
    notification: dict | None = None


def toast(notification_type: str, title: str, message: str) -> dict:
    return {'type': notification_type, 'title': title, 'message': message}


class EntityView:
    """
    Renders one screen as an HTML fragment and owns its action registry.

    Templates mark interactive elements with data-action / data-id attributes;
    the page's single delegated listener posts those back through dispatch().
    """

    def __init__(self, name: str, template_name: str, template_env, load: Callable[[str], dict]):
        self.name = name
        self.template_name = template_name
        self.template_env = template_env
        # load(query) -> template variables (records, stats, lookups)
        self.load = load
        self._handlers = {}

    def on(self, action: str, handler: Callable[[dict], str | None]) -> 'EntityView':
        """Registers a handler; it returns a success message or None."""
        self._handlers[action] = handler
        return self

    @property
    def actions(self) -> list:
        return sorted(self._handlers)

    def render(self, query: str = None) -> str:
        template = self.template_env.get_template(self.template_name)
        return template.render(view=self.name, query=query or '', actions=self.actions, **self.load(query))

    def dispatch(self, action: str, payload: dict = None) -> ViewResult:
        payload = payload or {}
        handler = self._handlers.get(action)
        if handler is None:
            log.warning(f"View '{self.name}' has no action '{action}'.")
            return ViewResult(self.render(), toast('error', 'Error', f"Unknown action: {action}"))

        notification = None
        try:
            message = handler(payload)
            if message:
                notification = toast('success', 'Success', message)
        except RentDeskError as e:
            log.warning(f"Action '{action}' on view '{self.name}' failed: {e}")
            notification = toast('error', 'Error', str(e))

        return ViewResult(self.render(payload.get('q')), notification)
