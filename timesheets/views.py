# File: timesheets/views.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

import json

from concurrency.exceptions import RecordModifiedError
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.translation import gettext as _
from django.views.decorators.http import require_http_methods

from core.utils.authz import require_store_access
from core.utils.periods import as_date
from stores.models import Store
from .duplication import check_duplicate
from .grid import grid_from_payload
from .models import Timesheet, public_holidays
from .rules import STATUS_UNSET
from .services import DuplicateTimesheetError, absence_catalog, grid_summary, load_grid, save_grid
from .validation import (
    CellContext,
    suggested_fix,
    valid_options_for,
    validate_cell,
    validate_grid,
    validate_period,
)


def _json_body(request) -> dict:
    try:
        data = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(_("Invalid JSON body: %(error)s") % {"error": e})
    if not isinstance(data, dict):
        raise ValidationError(_("JSON body must be an object."))
    return data


def _error(message, status=400, **extra):
    return JsonResponse({"success": False, "errors": message, **extra}, status=status)


@login_required
@require_http_methods(["GET"])
def grid_detail(request, pk):
    """Canonical grid of a stored timesheet, with totals and validation."""
    ts = get_object_or_404(Timesheet.objects.select_related("store"), pk=pk)
    try:
        require_store_access(request.user, ts.store)
    except PermissionDenied as e:
        return _error(str(e), status=403)

    catalog = absence_catalog()
    grid = load_grid(ts, catalog)
    validation = validate_grid(grid, catalog, public_holidays(grid.start_date, grid.end_date))
    return JsonResponse({
        "success": True,
        "version": ts.version,
        "grid": grid.as_dict(),
        "summary": grid_summary(grid, catalog).as_dict(),
        "validation": validation.as_dict(),
    })


@login_required
@require_http_methods(["GET"])
def check_duplicate_view(request):
    """?store=&start=&end=&exclude= -> duplication verdict."""
    store_id, exclude = request.GET.get("store", ""), request.GET.get("exclude", "")
    if not store_id.isdigit() or (exclude and not exclude.isdigit()):
        return _error(_("store and exclude must be numeric ids."))
    store = get_object_or_404(Store, pk=store_id)
    try:
        require_store_access(request.user, store)
    except PermissionDenied as e:
        return _error(str(e), status=403)

    start, end = request.GET.get("start"), request.GET.get("end")
    period = validate_period(start, end)
    if not period.is_valid:
        return _error(period.message)

    verdict = check_duplicate(store.pk, as_date(start), as_date(end), exclude_id=exclude or None)
    return JsonResponse({"success": True, **verdict.as_dict()})


@login_required
@require_http_methods(["POST"])
def validate_cell_view(request):
    """Verdict and selectable statuses for one cell."""
    try:
        data = _json_body(request)
        hours = float(data.get("hours") or 0)
        on = as_date(data["date"]) if data.get("date") else None
    except ValidationError as e:
        return _error(e.messages)
    except (TypeError, ValueError) as e:
        return _error(str(e))

    holidays = public_holidays(on, on) if on else set()
    ctx = CellContext(
        time_interval=str(data.get("timeInterval") or ""),
        status=str(data.get("status") or STATUS_UNSET),
        hours=hours,
        notes=str(data.get("notes") or ""),
        is_weekend=bool(data.get("isWeekend")) or (on is not None and on.weekday() >= 5),
        is_holiday=on in holidays,
        absence_types=absence_catalog(),
    )
    result = validate_cell(ctx)
    fix = suggested_fix(result)
    return JsonResponse({
        "success": True,
        **result.as_dict(),
        "suggestedFix": vars(fix) if fix else None,
        "options": list(valid_options_for(ctx)),
    })


@login_required
@require_http_methods(["POST"])
def save_grid_view(request):
    """
    Persist a grid sent in the `grid` layout returned by grid_detail.
    Body: {"grid": {...}, "force": false, "version": <int|null>}
    """
    try:
        data = _json_body(request)
        grid = grid_from_payload(data.get("grid"))
    except ValidationError as e:
        return _error(e.messages)
    except ValueError as e:
        return _error(str(e))

    try:
        result = save_grid(grid, user=request.user, force=bool(data.get("force")), version=data.get("version"))
    except DuplicateTimesheetError as e:
        return _error(e.messages, status=409, duplicate=e.verdict.as_dict())
    except PermissionDenied as e:
        return _error(str(e), status=403)
    except RecordModifiedError:
        return _error(_("The timesheet was changed by someone else. Reload and try again."), status=409)
    except ValidationError as e:
        return _error(e.messages)

    ts = result.timesheet
    return JsonResponse({
        "success": True,
        "created": result.created,
        "id": ts.pk,
        "version": ts.version,
        "totalHours": float(ts.total_hours),
        "warnings": [vars(w) for w in result.validation.warnings],
        "message": _("Timesheet saved."),
    })
