"""
Validation forms for the owner-facing catalogue endpoints.
JSON bodies use camelCase keys; views map them onto these field names.
"""
from django import forms
from apps.services.models import Service, BusinessHourWindow, WEEKDAY_CHOICES


class ServiceForm(forms.ModelForm):
    class Meta:
        model  = Service
        fields = ['name', 'description', 'price', 'duration_minutes']

    def clean_duration_minutes(self):
        duration = self.cleaned_data['duration_minutes']
        if duration is None or duration <= 0:
            raise forms.ValidationError('Duration must be a positive number of minutes.')
        return duration


class BusinessHourForm(forms.ModelForm):
    day_of_week = forms.TypedChoiceField(choices=WEEKDAY_CHOICES, coerce=int)
    start_time = forms.TimeField(input_formats=['%H:%M', '%H:%M:%S'])
    end_time = forms.TimeField(input_formats=['%H:%M', '%H:%M:%S'])

    class Meta:
        model  = BusinessHourWindow
        fields = ['day_of_week', 'start_time', 'end_time']

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get('start_time'), cleaned.get('end_time')
        if start and end and end <= start:
            raise forms.ValidationError('End time must be after start time.')
        return cleaned
