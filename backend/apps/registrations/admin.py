# apps/registrations/admin.py

from django.contrib import admin, messages
from django.utils.html import format_html

from apps.payments.models import Payment
from .models import Registration, TeamMember


class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0
    fields = ('position', 'name', 'email', 'phone')


class PaymentInline(admin.StackedInline):
    model = Payment
    extra = 0
    can_delete = False
    readonly_fields = (
        'order_id', 'payment_id', 'amount', 'original_amount',
        'discount_percent', 'currency', 'status', 'utr_number',
        'screenshot', 'screenshot_content_type', 'screenshot_file_name',
        'paid_at'
    )


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = (
        'registration_id',
        'full_name',
        'email',
        'event',
        'is_team',
        'ieee_member',
        'status_display',
        'created_at'
    )
    list_filter = (
        'status',
        'event',
        'ieee_member',
        'is_team',
        'created_at'
    )
    search_fields = (
        'registration_id',
        'full_name',
        'email',
        'team_name',
        'payment__utr_number',
        'payment__order_id'
    )
    # Status only changes through the lifecycle actions below
    readonly_fields = (
        'registration_id',
        'status',
        'qr_code',
        'registered_at',
        'created_at',
        'updated_at'
    )
    inlines = [TeamMemberInline, PaymentInline]

    fieldsets = (
        ('Registration', {
            'fields': (
                'registration_id',
                'status',
                'full_name',
                'email',
                'phone',
                'college',
                'event'
            )
        }),
        ('IEEE Membership', {
            'fields': (
                'ieee_member',
                'ieee_id',
                'ieee_certificate',
                'ieee_certificate_content_type',
                'ieee_certificate_file_name'
            )
        }),
        ('Team', {
            'fields': ('is_team', 'team_name')
        }),
        ('Pass', {
            'fields': ('qr_code',)
        }),
        ('Timestamps', {
            'fields': (
                'registered_at',
                'created_at',
                'updated_at'
            )
        })
    )

    def status_display(self, obj):
        colors = {
            'pending_payment': 'orange',
            'under_review': 'blue',
            'confirmed': 'green',
            'cancelled': 'red'
        }
        color = colors.get(obj.status, 'black')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; border-radius: 3px;">{}</span>',
            color,
            obj.get_status_display()
        )
    status_display.short_description = 'Status'

    actions = ['approve_payments', 'cancel_registrations']

    def approve_payments(self, request, queryset):
        from apps.payments.services.reconciliation_service import PaymentReconciliationService

        service = PaymentReconciliationService()
        approved = 0
        for registration in queryset.filter(status=Registration.Status.UNDER_REVIEW):
            if service.final_approve(registration.pk).success:
                approved += 1
        self.message_user(request, f'{approved} registration(s) approved.')
    approve_payments.short_description = 'Approve payment (under review only)'

    def cancel_registrations(self, request, queryset):
        from .services.registration_service import RegistrationService

        service = RegistrationService()
        cancelled = 0
        for registration in queryset:
            result = service.cancel_registration(registration.pk)
            if result.success:
                cancelled += 1
            else:
                self.message_user(
                    request,
                    f'{registration.registration_id}: {result.error}',
                    level=messages.WARNING
                )
        self.message_user(request, f'{cancelled} registration(s) cancelled.')
    cancel_registrations.short_description = 'Cancel registration'
