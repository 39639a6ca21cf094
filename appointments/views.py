# appointments/views.py - JSON endpoints over AppointmentLifecycleManager
import logging

from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from core.api import (
    parse_json_body, invalid_json_response, form_error_response,
    validation_error_response, money,
)
from core.errors import ClinicError, error_response
from core.utils import parse_date
from .forms import AppointmentForm, AppointmentPatchForm
from .lifecycle import AppointmentLifecycleManager

logger = logging.getLogger(__name__)


def serialize_appointment(appointment):
    patient = appointment.patient if appointment.patient_id else None
    return {
        'id': appointment.pk,
        'date': appointment.date.isoformat(),
        'time': appointment.time.strftime('%H:%M'),
        'status': appointment.status,
        'treatment_type': {
            'id': appointment.treatment_type_id,
            'label': appointment.treatment_type.label,
        },
        'patient': {
            'id': patient.pk,
            'name': patient.full_name,
            'email': patient.email,
        } if patient else None,
        'notes': appointment.notes,
        'payroll_deduction_months': appointment.payroll_deduction_months,
        'payroll_deduction_amount': money(appointment.payroll_deduction_amount),
    }


@login_required
@require_http_methods(["GET", "POST"])
def appointment_list(request):
    """
    GET: appointments ordered by date/time, optionally within
         ?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD
    POST: create an appointment
    """
    manager = AppointmentLifecycleManager()

    if request.method == 'GET':
        try:
            start_date = parse_date(request.GET.get('start_date'))
            end_date = parse_date(request.GET.get('end_date'))
        except ValueError:
            return JsonResponse({'error': 'INVALID_DATE', 'message': 'Invalid date format. Use YYYY-MM-DD'}, status=400)

        appointments = manager.list(start_date, end_date)
        return JsonResponse({'appointments': [serialize_appointment(a) for a in appointments]})

    data = parse_json_body(request)
    if data is None:
        return invalid_json_response()

    form = AppointmentForm(data=data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        appointment = manager.create(form.payload(), user=request.user)
    except ClinicError as e:
        return error_response(e, request)
    except ValidationError as e:
        return validation_error_response(e)

    appointment = manager.get(appointment.pk)
    return JsonResponse(serialize_appointment(appointment), status=201)


@login_required
@require_http_methods(["GET", "PATCH", "PUT", "DELETE"])
def appointment_detail(request, pk):
    manager = AppointmentLifecycleManager()

    try:
        if request.method == 'GET':
            return JsonResponse(serialize_appointment(manager.get(pk)))

        if request.method == 'DELETE':
            manager.remove(pk)
            return JsonResponse({'message': 'Appointment deleted'})

        data = parse_json_body(request)
        if data is None:
            return invalid_json_response()

        form = AppointmentPatchForm(data=data)
        if not form.is_valid():
            return form_error_response(form)

        appointment = manager.update(pk, form.payload(), user=request.user)
        return JsonResponse(serialize_appointment(manager.get(appointment.pk)))

    except ClinicError as e:
        return error_response(e, request)
    except ValidationError as e:
        return validation_error_response(e)
