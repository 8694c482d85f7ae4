# functions/utils/request_utils.py

import json
import logging
from functools import wraps

from firebase_functions import https_fn

from app_context import get_app_context
from utils.errors import ValidationError, NotFoundError
from utils.security import sanitize_object, security_headers, get_client_ip

log = logging.getLogger(__name__)

CSV_CONTENT_TYPES = ('text/csv', 'application/csv', 'text/plain')


def json_response(body, status: int = 200, headers: dict = None) -> https_fn.Response:
    return https_fn.Response(json.dumps(body), status=status, headers=headers, mimetype='application/json')


def error_response(message: str, status: int, headers: dict = None) -> https_fn.Response:
    return json_response({'error': message}, status=status, headers=headers)


def text_response(text: str, content_type: str, status: int = 200, filename: str = None) -> https_fn.Response:
    headers = {'Content-Type': content_type}
    if filename:
        headers['Content-Disposition'] = f'attachment; filename="{filename}"'
    return https_fn.Response(text, status=status, headers=headers)


def _is_csv(req) -> bool:
    content_type = (req.content_type or '').split(';')[0].strip().lower()
    return content_type in CSV_CONTENT_TYPES


def parse_body(req):
    """
    Returns the request body: CSV text for CSV uploads, a sanitized JSON value
    otherwise, or None when the body is empty. Raises ValueError on malformed JSON.
    """
    raw = req.get_data(as_text=True)
    if not raw or not raw.strip():
        return None
    if _is_csv(req):
        return raw
    return sanitize_object(json.loads(raw))


def _apply_headers(response, headers: dict):
    for name, value in headers.items():
        response.headers[name] = value
    return response


def secured(handler):
    """
    Wraps an HTTP function with rate limiting, CORS and security headers,
    JSON body validation and error-to-status mapping.
    The wrapped handler is called as handler(req, context, body).
    """
    @wraps(handler)
    def wrapper(req: https_fn.Request) -> https_fn.Response:
        context = get_app_context()
        headers = security_headers(context.config.get('allowed_origins'))

        client_ip = get_client_ip(req.headers)
        if not context.rate_limiter.allow(client_ip):
            log.warning(f"Rate limit exceeded for {client_ip} on {handler.__name__}.")
            response = error_response('Too many requests. Please try again later.', 429)
            response.headers['Retry-After'] = '60'
            return _apply_headers(response, headers)

        if req.method == 'OPTIONS':
            return _apply_headers(https_fn.Response('', status=200), headers)

        body = None
        if req.method in ('POST', 'PUT'):
            try:
                body = parse_body(req)
            except ValueError:
                return _apply_headers(error_response('Invalid JSON format', 400), headers)

        try:
            response = handler(req, context, body)
        except ValidationError as e:
            response = error_response(str(e), 400)
        except NotFoundError as e:
            response = error_response(str(e), 404)
        except Exception as e:
            log.error(f"Unexpected error in {handler.__name__}: {e}")
            response = error_response('Internal server error', 500)

        return _apply_headers(response, headers)

    return wrapper


def require_id(req, body=None) -> str:
    record_id = req.args.get('id') or (body.get('id') if isinstance(body, dict) else None)
    if not record_id:
        raise ValidationError('Missing id')
    return record_id


def handle_entity_request(req, store, body) -> https_fn.Response:
    """
    Shared CRUD routing for the entity endpoints.

    GET     ?id= | ?q= | ?view=stats|csv|json|analytics|charts
    POST    JSON record to add, or CSV text to import
    PUT     ?id= with the fields to change
    DELETE  ?id=
    """
    if req.method == 'GET':
        return _handle_entity_get(req, store)

    if req.method == 'POST':
        if isinstance(body, str):
            imported = store.import_csv(body)
            return json_response({'imported': len(imported), store.collection_name: imported}, 201)
        if not isinstance(body, dict):
            raise ValidationError(store.invalid_message)
        return json_response(store.add(body), 201)

    if req.method == 'PUT':
        if not isinstance(body, dict):
            raise ValidationError(store.invalid_message)
        return json_response(store.update(require_id(req, body), body))

    if req.method == 'DELETE':
        return json_response({'success': store.delete(require_id(req))})

    return error_response('Method not allowed', 405)


def _handle_entity_get(req, store) -> https_fn.Response:
    record_id = req.args.get('id')
    if record_id:
        record = store.get_by_id(record_id)
        if record is None:
            raise NotFoundError(f"{store.entity_name} not found")
        return json_response(record)

    view = req.args.get('view')
    if view == 'stats':
        return json_response(store.get_stats())
    if view == 'csv':
        return text_response(store.export_csv(), 'text/csv', filename=f"{store.collection_name}.csv")
    if view == 'json':
        return text_response(store.export_json(), 'application/json', filename=f"{store.collection_name}.json")
    if view in ('analytics', 'charts'):
        method = getattr(store, 'get_analytics' if view == 'analytics' else 'get_chart_data', None)
        if method is None:
            raise ValidationError(f"View '{view}' is not available for {store.collection_name}")
        return json_response(method())
    if view:
        raise ValidationError(f"Unknown view: {view}")

    query = req.args.get('q')
    return json_response(store.search(query) if query else store.get_all())
