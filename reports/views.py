# reports/views.py - JSON endpoints and PDF export over ReportGenerator
import logging

from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, JsonResponse
from django.template.loader import render_to_string
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods
from xhtml2pdf import pisa

from core.api import parse_json_body, invalid_json_response, form_error_response, money
from core.errors import ClinicError, error_response
from core.models import SystemSetting
from .forms import ReportRequestForm
from .generator import ReportGenerator

logger = logging.getLogger(__name__)


def serialize_report(report):
    return {
        'id': report.pk,
        'type': report.report_type,
        'date': report.date.isoformat(),
        'start_date': report.start_date.isoformat(),
        'end_date': report.end_date.isoformat(),
        'total_amount': money(report.total_amount),
        'company_name': report.company_name,
        'data': report.data,
        'created_at': report.created_at.isoformat(),
    }


@login_required
@require_http_methods(["GET", "POST"])
def report_list(request):
    """
    GET: stored reports, newest first, optionally filtered by ?type=
    POST: generate and store a new report snapshot
    """
    generator = ReportGenerator()

    if request.method == 'GET':
        try:
            reports = generator.list(request.GET.get('type') or None)
        except ClinicError as e:
            return error_response(e, request)
        return JsonResponse({'reports': [serialize_report(r) for r in reports]})

    data = parse_json_body(request)
    if data is None:
        return invalid_json_response()

    form = ReportRequestForm(data=data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        report = generator.create(
            form.cleaned_data['type'],
            reference_date=form.cleaned_data.get('date'),
            company_name=form.cleaned_data.get('company_name'),
            user=request.user,
        )
    except ClinicError as e:
        return error_response(e, request)

    return JsonResponse(serialize_report(report), status=201)


@login_required
@require_http_methods(["GET", "DELETE"])
def report_detail(request, pk):
    generator = ReportGenerator()
    try:
        if request.method == 'DELETE':
            generator.remove(pk)
            return JsonResponse({'message': 'Report deleted'})
        return JsonResponse(serialize_report(generator.get(pk)))
    except ClinicError as e:
        return error_response(e, request)


@login_required
@require_GET
def report_pdf(request, pk):
    """Export a stored report snapshot to PDF"""
    try:
        report = ReportGenerator().get(pk)
    except ClinicError as e:
        return error_response(e, request)

    context = {
        'report': report,
        'payload': report.payload,
        'clinic': SystemSetting.clinic_header(),
        'generated_at': timezone.now(),
        'generated_by': request.user.get_full_name() or request.user.get_username(),
    }
    html_string = render_to_string('reports/report_pdf.html', context)

    response = HttpResponse(content_type='application/pdf')
    filename = f'Report_{report.report_type}_{report.start_date}_{report.end_date}.pdf'
    response['Content-Disposition'] = f'inline; filename="{filename}"'

    pisa_status = pisa.CreatePDF(html_string, dest=response)
    if pisa_status.err:
        logger.error(f"PDF generation failed for report {report.pk}")
        return JsonResponse({'error': 'PDF_GENERATION_FAILED', 'message': 'Error generating PDF'}, status=500)

    return response
