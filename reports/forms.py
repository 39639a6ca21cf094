# reports/forms.py
from django import forms


class ReportRequestForm(forms.Form):
    """
    Shape of a report generation request. The report type is checked by
    ReportGenerator so an unknown type surfaces as INVALID_REPORT_TYPE.
    """
    type = forms.CharField(max_length=20)
    date = forms.DateField(required=False, input_formats=['%Y-%m-%d'])
    company_name = forms.CharField(max_length=200, required=False)

    def clean_company_name(self):
        return (self.cleaned_data.get('company_name') or '').strip() or None
