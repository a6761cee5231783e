import logging
from datetime import datetime
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.http import HttpResponse
from django.utils import timezone
from retail_erp.branches.models import Branch
from retail_erp.core.capabilities import VIEW_REPORTS, require
from retail_erp.core.session import session_for, branch_scope
from .csv_exporters import FinancialReportCSVExporter
from . import services

logger = logging.getLogger('retail_erp.reports')


def _parse_date(value):
    if not value:
        return None
    return datetime.strptime(value, '%Y-%m-%d').date()


def _financial_report_for(request):
    """Shared by the JSON and CSV endpoints. Raises ValueError on bad parameters."""
    session = session_for(request)
    branch_id = branch_scope(session, request.query_params.get('branch'))
    period = request.query_params.get('period', 'monthly')
    start, end = services.financial_period(
        period,
        date_from=_parse_date(request.query_params.get('date_from')),
        date_to=_parse_date(request.query_params.get('date_to')),
    )
    logger.info(f"User {session.email} requested financial report {period} {start}..{end} branch={branch_id}")
    return services.financial_report(start, end, branch_id)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Dashboard variant for the caller's role"""
    return Response(services.dashboard(session_for(request)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(VIEW_REPORTS)])
def financial_report(request):
    """?branch=&period=monthly|quarterly|yearly|custom&date_from=&date_to="""
    try:
        report = _financial_report_for(request)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(report)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(VIEW_REPORTS)])
def financial_report_export(request):
    try:
        report = _financial_report_for(request)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    branch_name = None
    if report['branch'] is not None:
        branch_name = Branch.objects.filter(pk=report['branch']).values_list('name', flat=True).first()

    exporter = FinancialReportCSVExporter()
    filename = f"financial_report_{timezone.localdate():%Y-%m-%d}.{exporter.file_extension}"
    response = HttpResponse(exporter.export(report, branch_name=branch_name),
                            content_type=f'{exporter.content_type}; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(VIEW_REPORTS)])
def sales_analytics(request):
    """?branch=&period=week|month|quarter|year"""
    session = session_for(request)
    branch_id = branch_scope(session, request.query_params.get('branch'))
    try:
        start, end = services.analytics_period(request.query_params.get('period', 'month'))
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.sales_analytics(start, end, branch_id))
