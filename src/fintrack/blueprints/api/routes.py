"""JSON API routes."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from ...errors import LedgerError, ValidationError
from ...extensions import get_session_factory
from ...logging_config import get_logger
from ...services import accounts as account_service
from ...services import categories as category_service
from ...services import projections
from ...services.ledger_service import LedgerService
from ...services.reconciliation import reconcile
from . import bp
from .forms import AccountForm, CategoryForm, TransactionForm

logger = get_logger("api")


def _owner_id() -> int:
    return current_app.config["FINTRACK_OWNER_ID"]


def _ledger() -> LedgerService:
    return LedgerService(get_session_factory())


def _payload() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _validated(form):
    if not form.validate():
        logger.warning(
            "Rejected payload",
            extra={"endpoint": request.endpoint, "errors": form.errors},
        )
        form.raise_for_errors()
    return form


@bp.errorhandler(LedgerError)
def _handle_ledger_error(exc: LedgerError):
    if exc.status_code < 500:
        logger.warning(
            "Request rejected: %s",
            exc.message,
            extra={"endpoint": request.endpoint, "status": exc.status_code},
        )
    return jsonify(exc.to_dict()), exc.status_code


@bp.errorhandler(HTTPException)
def _handle_http_error(exc: HTTPException):
    return jsonify({"error": exc.name.lower().replace(" ", "_"), "message": exc.description}), exc.code


@bp.errorhandler(Exception)
def _handle_unexpected(exc: Exception):
    logger.exception("Unhandled error", extra={"endpoint": request.endpoint})
    return jsonify({"error": "server_error", "message": "Unexpected server error"}), 500


# ----------------------------------------------------------------- transactions


@bp.get("/transactions")
def list_transactions():
    """Every ledger entry, newest first, with signed amounts."""

    entries = projections.list_transactions(
        user_id=_owner_id(), session_factory=get_session_factory()
    )
    return jsonify([entry.to_dict() for entry in entries])


def _resolve_references(service: LedgerService, form: TransactionForm, user_id: int) -> tuple[int, int]:
    category_id = form.category_id
    if category_id is None:
        category_id = service.resolve_category(form.category_name or "", user_id=user_id)
    account_id = form.account_id
    if account_id is None:
        account_id = service.resolve_account(form.account_name or "", user_id=user_id)
    return category_id, account_id


@bp.post("/transactions")
def create_transaction():
    """Record a transaction and adjust its account balance."""

    form = _validated(TransactionForm.from_mapping(_payload()))
    user_id = _owner_id()
    service = _ledger()
    category_id, account_id = _resolve_references(service, form, user_id)

    entry = service.create(
        user_id=user_id,
        amount=form.amount,  # type: ignore[arg-type]
        occurred_at=form.occurred_at,  # type: ignore[arg-type]
        note=form.note,
        category_id=category_id,
        account_id=account_id,
        transaction_type=form.transaction_type,  # type: ignore[arg-type]
    )
    return jsonify(entry.to_dict()), 201


@bp.put("/transactions/<int:transaction_id>")
def update_transaction(transaction_id: int):
    """Rewrite a transaction; balances move with it, across accounts if needed."""

    user_id = _owner_id()
    service = _ledger()
    service.get(transaction_id, user_id=user_id)

    form = _validated(TransactionForm.from_mapping(_payload()))
    category_id, account_id = _resolve_references(service, form, user_id)

    entry = service.update(
        transaction_id,
        user_id=user_id,
        amount=form.amount,  # type: ignore[arg-type]
        occurred_at=form.occurred_at,  # type: ignore[arg-type]
        note=form.note,
        category_id=category_id,
        account_id=account_id,
        transaction_type=form.transaction_type,  # type: ignore[arg-type]
    )
    return jsonify(entry.to_dict())


@bp.delete("/transactions/<int:transaction_id>")
def delete_transaction(transaction_id: int):
    _ledger().delete(transaction_id, user_id=_owner_id())
    return "", 204


# ------------------------------------------------------------------- categories


@bp.get("/categories")
def list_categories():
    rows = category_service.list_categories(
        user_id=_owner_id(), session_factory=get_session_factory()
    )
    return jsonify([category_service.category_to_dict(row) for row in rows])


@bp.post("/categories")
def create_category():
    form = _validated(CategoryForm.from_mapping(_payload()))
    category = category_service.create_category(
        user_id=_owner_id(),
        name=form.name,  # type: ignore[arg-type]
        color=form.color,
        session_factory=get_session_factory(),
    )
    return jsonify(category_service.category_to_dict(category)), 201


@bp.put("/categories/<int:category_id>")
def update_category(category_id: int):
    form = _validated(CategoryForm.from_mapping(_payload(), partial=True))
    category = category_service.update_category(
        category_id,
        user_id=_owner_id(),
        name=form.name,
        color=form.color,
        session_factory=get_session_factory(),
    )
    return jsonify(category_service.category_to_dict(category))


@bp.delete("/categories/<int:category_id>")
def delete_category(category_id: int):
    category_service.delete_category(
        category_id, user_id=_owner_id(), session_factory=get_session_factory()
    )
    return "", 204


# --------------------------------------------------------------------- accounts


@bp.get("/accounts")
def list_accounts():
    rows = account_service.list_accounts(
        user_id=_owner_id(), session_factory=get_session_factory()
    )
    return jsonify([account_service.account_to_dict(row) for row in rows])


@bp.post("/accounts")
def create_account():
    form = _validated(AccountForm.from_mapping(_payload()))
    account = account_service.create_account(
        user_id=_owner_id(),
        name=form.name,  # type: ignore[arg-type]
        opening_balance=form.balance,
        session_factory=get_session_factory(),
    )
    return jsonify(account_service.account_to_dict(account)), 201


@bp.delete("/accounts/<int:account_id>")
def delete_account(account_id: int):
    account_service.delete_account(
        account_id, user_id=_owner_id(), session_factory=get_session_factory()
    )
    return "", 204


@bp.get("/accounts/reconcile")
def reconcile_accounts():
    """Compare cached balances with the ledger without changing anything."""

    result = reconcile(user_id=_owner_id(), session_factory=get_session_factory())
    return jsonify(result.to_dict())


@bp.post("/accounts/reconcile")
def repair_accounts():
    """Overwrite drifted balances with their ledger totals."""

    result = reconcile(
        user_id=_owner_id(), session_factory=get_session_factory(), repair=True
    )
    return jsonify(result.to_dict())


# -------------------------------------------------------------------- read-side


@bp.get("/dashboard")
def dashboard():
    config = current_app.config["FINTRACK_CONFIG"]
    summary = projections.dashboard(
        user_id=_owner_id(),
        session_factory=get_session_factory(),
        recent_limit=config.RECENT_TRANSACTIONS_LIMIT,
        category_limit=config.CATEGORY_SPENDING_LIMIT,
        month_limit=config.MONTHLY_SUMMARY_LIMIT,
    )
    return jsonify(summary)


@bp.get("/reports")
def reports():
    report_type = request.args.get("reportType", "").strip()
    time_range = request.args.get("timeRange", "").strip()
    if not report_type or not time_range:
        return (
            jsonify(
                {
                    "error": "missing_parameter",
                    "message": "reportType and timeRange are required",
                }
            ),
            400,
        )
    try:
        data = projections.report(
            user_id=_owner_id(),
            report_type=report_type,
            time_range=time_range,
            session_factory=get_session_factory(),
        )
    except ValueError as exc:
        return jsonify({"error": "invalid_parameter", "message": str(exc)}), 400
    return jsonify(data)
