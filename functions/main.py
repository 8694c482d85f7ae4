from firebase_functions import https_fn
from firebase_functions.options import set_global_options
import logging

from logic.validation import validate_verification_request
from services.email_service import send_verification_email as send_verification_code_email, send_receipt_email
from services.receipt_service import generate_receipt_pdf
from services.storage_service import upload_to_storage, download_from_storage, build_storage_path
from utils.errors import ValidationError, NotFoundError
from utils.csv_utils import to_int
from utils.request_utils import (
    secured, handle_entity_request, json_response, error_response, text_response, require_id,
)


# Set up a module-level logger
log = logging.getLogger(__name__)

# Firebase is initialized lazily by the app context, only for the firebase storage backend.
set_global_options(max_instances=1)


@https_fn.on_request()
@secured
def properties(req: https_fn.Request, context, body) -> https_fn.Response:
    """CRUD, search, CSV import/export and analytics for properties."""
    return handle_entity_request(req, context.properties, body)


@https_fn.on_request()
@secured
def tenants(req: https_fn.Request, context, body) -> https_fn.Response:
    """CRUD, search, CSV import/export and analytics for tenants."""
    return handle_entity_request(req, context.tenants, body)


@https_fn.on_request()
@secured
def payments(req: https_fn.Request, context, body) -> https_fn.Response:
    """
    CRUD for payments.
    POST ?action=mark_paid&id= completes a pending payment.
    """
    store = context.payments
    if req.method == 'GET' and req.args.get('view') == 'recent':
        return json_response(store.get_recent(to_int(req.args.get('limit'), 10)))
    if req.method == 'GET' and req.args.get('view') == 'outstanding':
        return json_response(store.get_outstanding())
    if req.method == 'GET' and req.args.get('tenantId'):
        return json_response(store.get_by_tenant(req.args['tenantId']))

    if req.method == 'POST' and req.args.get('action') == 'mark_paid':
        method = body.get('method') if isinstance(body, dict) else None
        return json_response(store.mark_completed(require_id(req, body), method))

    return handle_entity_request(req, store, body)


@https_fn.on_request()
@secured
def maintenance(req: https_fn.Request, context, body) -> https_fn.Response:
    """
    CRUD for maintenance requests, plus lifecycle actions:
    POST ?action=complete|assign|reopen|status&id=
    """
    store = context.maintenance
    action = req.args.get('action')

    if req.method == 'GET' and req.args.get('status'):
        return json_response(store.get_by_status(req.args['status']))
    if req.method == 'GET' and req.args.get('view') == 'urgent':
        return json_response(store.get_urgent())

    if req.method == 'POST' and action:
        data = body if isinstance(body, dict) else {}
        request_id = require_id(req, data)
        if action == 'complete':
            return json_response(store.complete_request(request_id, data.get('actualCost'), data.get('notes', '')))
        if action == 'assign':
            if not data.get('assignedTo'):
                raise ValidationError('Missing assignedTo')
            return json_response(store.assign_request(request_id, data['assignedTo']))
        if action == 'reopen':
            return json_response(store.reopen_request(request_id))
        if action == 'status':
            return json_response(store.update_status(request_id, data.get('status')))
        raise ValidationError(f"Unknown action: {action}")

    return handle_entity_request(req, store, body)


@https_fn.on_request()
@secured
def settings(req: https_fn.Request, context, body) -> https_fn.Response:
    """
    GET  ?view=plan|usage|billing|export|theme
    PUT  saves settings fields
    POST ?action=profile|password|two_factor|payment_method|integration|reset
    """
    service = context.settings
    data = body if isinstance(body, dict) else {}

    if req.method == 'GET':
        view = req.args.get('view')
        if view == 'plan':
            return json_response(service.get_user_plan())
        if view == 'usage':
            return json_response(service.get_plan_usage(context.properties.total_units()))
        if view == 'billing':
            return json_response(service.get_billing_history())
        if view == 'export':
            return text_response(service.export_user_data(), 'application/json', filename='settings.json')
        if view == 'theme':
            return json_response({'theme': service.get_theme()})
        return json_response(service.get_settings())

    if req.method == 'PUT':
        merged = {**service.get_settings(), **data}
        service.save_settings(merged)
        return json_response(merged)

    if req.method == 'POST':
        action = req.args.get('action')
        if action == 'profile':
            return json_response(service.update_profile(data))
        if action == 'password':
            return json_response(service.change_password(data.get('currentPassword'), data.get('newPassword')))
        if action == 'two_factor':
            return json_response(service.toggle_two_factor(bool(data.get('enable'))))
        if action == 'payment_method':
            return json_response(service.update_payment_method(data))
        if action == 'integration':
            return json_response(service.toggle_integration(data.get('integration'), bool(data.get('enable'))))
        if action == 'reset':
            return json_response(service.reset_to_defaults())
        raise ValidationError(f"Unknown action: {action}")

    return error_response('Method not allowed', 405)


@https_fn.on_request()
@secured
def dashboard(req: https_fn.Request, context, body) -> https_fn.Response:
    """Dashboard statistics and recent activity; ?view=export downloads everything as JSON."""
    if req.method != 'GET':
        return error_response('Method not allowed', 405)
    if req.args.get('view') == 'export':
        return text_response(context.dashboard.export_dashboard_data(), 'application/json',
                             filename='dashboard.json')
    return json_response(context.dashboard.get_overview())


@https_fn.on_request()
@secured
def notifications(req: https_fn.Request, context, body) -> https_fn.Response:
    service = context.notifications

    if req.method == 'GET':
        return json_response({'notifications': service.get_all(), 'unreadCount': service.unread_count()})

    if req.method == 'POST':
        action = req.args.get('action')
        if action == 'read':
            notification_id = require_id(req, body)
            if not service.mark_read(notification_id):
                raise NotFoundError('Notification not found')
            return json_response({'success': True})
        if action == 'read_all':
            return json_response({'success': True, 'updated': service.mark_all_read()})
        raise ValidationError(f"Unknown action: {action}")

    if req.method == 'DELETE':
        service.clear()
        return json_response({'success': True})

    return error_response('Method not allowed', 405)


@https_fn.on_request()
@secured
def render_view(req: https_fn.Request, context, body) -> https_fn.Response:
    """
    GET  ?route=#tenants&q=  returns the screen as an HTML fragment.
    POST {route, action, payload} runs a view action and returns {html, notification}.
    """
    if req.method == 'GET':
        html = context.router.render(req.args.get('route'), req.args.get('q'))
        return https_fn.Response(html, status=200, headers={'Content-Type': 'text/html; charset=utf-8'})

    if req.method == 'POST':
        data = body if isinstance(body, dict) else {}
        if not data.get('action'):
            raise ValidationError('Missing action')
        result = context.router.dispatch(data.get('route'), data['action'], data.get('payload'))
        return json_response({'html': result.html, 'notification': result.notification})

    return error_response('Method not allowed', 405)


@https_fn.on_request()
@secured
def send_verification_email(req: https_fn.Request, context, body) -> https_fn.Response:
    """Emails a six-digit sign-up verification code."""
    if req.method != 'POST':
        return error_response('Method not allowed', 405)

    data = body if isinstance(body, dict) else {}
    is_valid, message = validate_verification_request(data)
    if not is_valid:
        return error_response(message, 400)

    if send_verification_code_email(data, context.template_env):
        return json_response({'success': True, 'message': 'Verification email sent successfully'})

    log.error(f"Failed to send verification email to {data.get('email')}.")
    return error_response('Failed to send verification email', 500)


def _receipt_file_name(payment_id) -> str:
    return f"receipt-{payment_id}"


@https_fn.on_request()
@secured
def generate_receipt(req: https_fn.Request, context, body) -> https_fn.Response:
    """
    Generates a PDF receipt for a completed payment, stores it and returns its URL.
    Pass {"sendEmail": true} to also email it to the tenant.
    """
    data = body if isinstance(body, dict) else {}
    payment_id = req.args.get('paymentId') or data.get('paymentId')
    if not payment_id:
        log.error("Missing paymentId in request.")
        return error_response('Missing paymentId', 400)

    payment = context.payments.get_by_id(payment_id)
    if payment is None:
        raise NotFoundError('Payment not found')
    if payment.get('status') != 'completed':
        raise ValidationError('Receipts are only available for completed payments')

    tenant = context.tenants.get_by_id(payment.get('tenantId'))
    prop = context.properties.get_by_id(payment.get('propertyId'))
    pdf_bytes = generate_receipt_pdf(payment, tenant, prop)

    file_path = upload_to_storage(pdf_bytes, context.auth.user_id, _receipt_file_name(payment['id']), file_type="receipts")
    if not file_path:
        log.error(f"Failed to upload receipt for payment {payment_id}.")
        return error_response('Failed to upload receipt', 500)

    # Construct the URL to the get_receipt Cloud Function
    base_url = context.config.get('cloud_function_base_url')
    receipt_url = f"{base_url}/get_receipt?paymentId={payment['id']}"

    emailed = False
    if data.get('sendEmail') and tenant and tenant.get('email'):
        tenant_name = f"{tenant.get('firstName', '')} {tenant.get('lastName', '')}".strip()
        emailed = send_receipt_email(tenant['email'], tenant_name, receipt_url, pdf_bytes, context.template_env)

    return json_response({'receiptUrl': receipt_url, 'path': file_path, 'emailed': emailed})


@https_fn.on_request()
@secured
def get_receipt(req: https_fn.Request, context, body) -> https_fn.Response:
    """
    Streams a stored receipt PDF back to the client, hiding the storage path.
    """
    payment_id = req.args.get('paymentId')
    if not payment_id:
        log.error("Missing paymentId query parameter for get_receipt.")
        return error_response('Missing paymentId', 400)

    file_path = build_storage_path(context.auth.user_id, _receipt_file_name(payment_id), "receipts")
    pdf_content = download_from_storage(file_path)
    if pdf_content is None:
        return error_response('Receipt file not found in storage', 404)

    log.info(f"Streaming receipt PDF for payment {payment_id} directly to client.")
    return https_fn.Response(pdf_content, headers={"Content-Type": "application/pdf"}, status=200)
