# ==========================================
# apps/accounts/admin.py
# ==========================================

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count
from apps.budget.models import BankAccount
from .models import User


class BankAccountInline(admin.TabularInline):
    model = BankAccount
    fields = ['name', 'account_type', 'current_balance']
    readonly_fields = fields
    extra = 0
    can_delete = False
    show_change_link = True


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Budget owners with their bank accounts inline."""

    list_display = ['email', 'display_name', 'currency', 'account_count', 'envelope_count', 'is_active', 'last_login']
    list_filter = ['is_active', 'is_staff', 'currency']
    search_fields = ['email', 'display_name']
    ordering = ['-created_at']
    inlines = [BankAccountInline]

    fieldsets = (
        ('Owner', {'fields': ('email', 'display_name', 'currency', 'password')}),
        ('Access', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        ('Activity', {'fields': ('created_at', 'last_login')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'currency', 'password1', 'password2'),
        }),
    )
    readonly_fields = ['created_at', 'last_login']
    filter_horizontal = ['groups', 'user_permissions']

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            _account_count=Count('bank_accounts', distinct=True),
            _envelope_count=Count('envelopes', distinct=True),
        )

    @admin.display(description='Accounts', ordering='_account_count')
    def account_count(self, obj):
        return obj._account_count

    @admin.display(description='Envelopes', ordering='_envelope_count')
    def envelope_count(self, obj):
        return obj._envelope_count
