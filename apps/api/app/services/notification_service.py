"""
Notification service - approval workflow emails.

Every function here is called after the owning transaction has committed
and is best-effort: failures are logged and reported through the return
value, never raised.
"""

import html
import logging

from app.core.config import settings
from app.db.enums import DeleteActionType
from app.db.models import DeleteRequest, TransferRequest, UnarchiveRequest
from app.services.email_sender import EmailSender, get_email_sender

logger = logging.getLogger(__name__)

ESCALATED_PREFIX = "[ESCALATED] "


def _send(sender: EmailSender | None, to: list[str], subject: str, body: str) -> bool:
    sender = sender or get_email_sender()
    try:
        sender.send(to, subject, body)
    except Exception:
        logger.exception("Failed to send notification '%s' to %s", subject, to)
        return False
    return True


def _record_label(record_type: str, record_number: str | None, record_id) -> str:
    return f"{record_type} {record_number or record_id}"


def _dependencies_list(summary: dict | None) -> str:
    summary = summary or {}
    labels = (
        ("hiring_managers", "Hiring Managers"),
        ("jobs", "Jobs"),
        ("leads", "Leads"),
        ("placements", "Placements"),
        ("child_organizations", "Child Organizations"),
    )
    items = [f"{summary[key]} {label}" for key, label in labels if summary.get(key, 0) > 0]
    return ", ".join(items) if items else "None"


def is_escalated(request: DeleteRequest) -> bool:
    return (
        settings.escalation_configured
        and (request.retry_count or 0) >= settings.DELETE_REQUEST_ESCALATION_AFTER_RETRIES
    )


# =============================================================================
# Delete requests
# =============================================================================


def notify_delete_request_pending(request: DeleteRequest, sender: EmailSender | None = None) -> bool:
    """
    Ask the reviewer mailbox to approve or deny a pending delete request.

    Once a request has gone through enough expiry cycles it is also sent to
    the escalation address with an [ESCALATED] subject.
    """
    label = _record_label(request.record_type, request.record_number, request.record_id)
    is_cascade = request.action_type == DeleteActionType.CASCADE.value
    escalated = is_escalated(request)

    subject = ("Cascade Deletion Request: " if is_cascade else "Delete Request: ") + label
    recipients = [settings.PAYROLL_EMAIL]
    banner = ""
    if escalated:
        subject = ESCALATED_PREFIX + subject
        recipients.append(settings.DELETE_REQUEST_ESCALATION_EMAIL)
        banner = (
            f"<p><strong>ESCALATED</strong> - This request has been pending through "
            f"{request.retry_count} retry cycle(s) and requires urgent attention.</p>"
        )

    review_url = f"{settings.FRONTEND_URL.rstrip('/')}/delete-requests/{request.id}"
    body = (
        f"{banner}"
        f"<p>{html.escape(request.requested_by_name or 'A user')} requested deletion of "
        f"<strong>{html.escape(label)}</strong>.</p>"
        f"<p>Reason: {html.escape(request.reason)}</p>"
    )
    if is_cascade:
        body += f"<p>Linked records: {html.escape(_dependencies_list(request.dependencies_summary))}</p>"
    body += f'<p><a href="{review_url}">Review request</a></p>'

    return _send(sender, recipients, subject, body)


def notify_delete_request_approved(request: DeleteRequest, sender: EmailSender | None = None) -> bool:
    if not request.requested_by_email:
        return False
    label = _record_label(request.record_type, request.record_number, request.record_id)
    body = (
        f"<p>Your delete request for <strong>{html.escape(label)}</strong> was approved. "
        f"The record has been archived and will be permanently deleted after "
        f"{settings.ARCHIVE_GRACE_PERIOD_DAYS} days.</p>"
    )
    return _send(sender, [request.requested_by_email], f"Delete Request Approved: {label}", body)


def notify_delete_request_denied(request: DeleteRequest, sender: EmailSender | None = None) -> bool:
    if not request.requested_by_email:
        return False
    label = _record_label(request.record_type, request.record_number, request.record_id)
    body = (
        f"<p>Your delete request for <strong>{html.escape(label)}</strong> was denied.</p>"
        f"<p>Reason: {html.escape(request.denial_reason or '')}</p>"
    )
    return _send(sender, [request.requested_by_email], f"Delete Request Denied: {label}", body)


# =============================================================================
# Unarchive requests
# =============================================================================


def notify_unarchive_request_pending(request: UnarchiveRequest, sender: EmailSender | None = None) -> bool:
    label = _record_label(request.record_type, request.record_number, request.record_id)
    review_url = f"{settings.FRONTEND_URL.rstrip('/')}/unarchive-requests/{request.id}"
    body = (
        f"<p>{html.escape(request.requested_by_name or 'A user')} requested that "
        f"<strong>{html.escape(label)}</strong> be restored from the archive.</p>"
        f"<p>Reason: {html.escape(request.reason)}</p>"
        f"<p>Archived records are permanently deleted after "
        f"{settings.ARCHIVE_GRACE_PERIOD_DAYS} days.</p>"
        f'<p><a href="{review_url}">Review request</a></p>'
    )
    return _send(sender, [settings.PAYROLL_EMAIL], f"Unarchive Request: {label}", body)


def notify_unarchive_request_approved(request: UnarchiveRequest, sender: EmailSender | None = None) -> bool:
    if not request.requested_by_email:
        return False
    label = _record_label(request.record_type, request.record_number, request.record_id)
    body = (
        f"<p>Your unarchive request for <strong>{html.escape(label)}</strong> was approved. "
        f"The record is active again.</p>"
    )
    return _send(sender, [request.requested_by_email], f"Unarchive Request Approved: {label}", body)


def notify_unarchive_request_denied(request: UnarchiveRequest, sender: EmailSender | None = None) -> bool:
    if not request.requested_by_email:
        return False
    label = _record_label(request.record_type, request.record_number, request.record_id)
    body = (
        f"<p>Your unarchive request for <strong>{html.escape(label)}</strong> was denied.</p>"
        f"<p>Reason: {html.escape(request.denial_reason or '')}</p>"
    )
    return _send(sender, [request.requested_by_email], f"Unarchive Request Denied: {label}", body)


# =============================================================================
# Transfers
# =============================================================================


def _transfer_label(transfer: TransferRequest) -> str:
    source = transfer.source_record_number or str(transfer.source_id)
    target = transfer.target_record_number or str(transfer.target_id)
    return f"{source} -> {target}"


def notify_transfer_requested(transfer: TransferRequest, sender: EmailSender | None = None) -> bool:
    label = _transfer_label(transfer)
    review_url = f"{settings.FRONTEND_URL.rstrip('/')}/transfers/{transfer.id}"
    body = (
        f"<p>{html.escape(transfer.requested_by_name or 'A user')} requested a "
        f"{html.escape(transfer.record_type)} transfer <strong>{html.escape(label)}</strong>.</p>"
        f'<p><a href="{review_url}">Review request</a></p>'
    )
    return _send(sender, [settings.PAYROLL_EMAIL], f"Transfer Request: {label}", body)


def notify_transfer_approved(transfer: TransferRequest, sender: EmailSender | None = None) -> bool:
    if not transfer.requested_by_email:
        return False
    label = _transfer_label(transfer)
    body = f"<p>Your transfer <strong>{html.escape(label)}</strong> was approved and completed.</p>"
    return _send(sender, [transfer.requested_by_email], f"Transfer Request Approved: {label}", body)


def notify_transfer_denied(transfer: TransferRequest, sender: EmailSender | None = None) -> bool:
    if not transfer.requested_by_email:
        return False
    label = _transfer_label(transfer)
    body = (
        f"<p>Your transfer <strong>{html.escape(label)}</strong> was denied.</p>"
        f"<p>Reason: {html.escape(transfer.denial_reason or '')}</p>"
    )
    return _send(sender, [transfer.requested_by_email], f"Transfer Request Denied: {label}", body)
