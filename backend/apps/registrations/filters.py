import django_filters

from .models import Registration


class RegistrationFilter(django_filters.FilterSet):
    """Admin listing filters."""
    status = django_filters.ChoiceFilter(choices=Registration.Status.choices)
    event = django_filters.CharFilter(lookup_expr='iexact')
    registered_after = django_filters.IsoDateTimeFilter(
        field_name='created_at', lookup_expr='gte')
    registered_before = django_filters.IsoDateTimeFilter(
        field_name='created_at', lookup_expr='lte')

    class Meta:
        model = Registration
        fields = ['status', 'event', 'ieee_member', 'is_team']
