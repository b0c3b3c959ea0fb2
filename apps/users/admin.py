from django.contrib import admin
from django.contrib import messages
from django.contrib.auth.admin import UserAdmin
from django.utils.html import format_html

from apps.sellers.models import SellerProfile
from .models import CustomUser


class SellerProfileInline(admin.StackedInline):
    """Seller payment identity shown on the user page"""
    model = SellerProfile
    can_delete = False
    extra = 0
    fields = ['seller_id', 'business_name', 'full_name', 'phone']
    readonly_fields = ['seller_id']


class CustomUserAdmin(UserAdmin):
    model = CustomUser
    list_display = ('email', 'get_full_name', 'role_badge', 'seller_wallet', 'is_active')
    list_filter = ('role', 'is_active', 'is_staff')
    ordering = ('email',)
    search_fields = ('email', 'username', 'sellerprofile__business_name')
    inlines = [SellerProfileInline]

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Marketplace', {'fields': ('username', 'role')}),
        ('Back-office access', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'role', 'is_active')}
        ),
    )
    filter_horizontal = ('groups', 'user_permissions')

    actions = ['promote_to_seller']

    def role_badge(self, obj):
        colors = {'seller': 'green', 'admin': 'purple', 'buyer': 'gray'}
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.role, 'gray'), obj.get_role_display()
        )
    role_badge.short_description = 'Role'

    def seller_wallet(self, obj):
        record = getattr(getattr(obj, 'sellerprofile', None), 'financial_record', None) if obj.is_seller else None
        if record is None:
            return '-'
        return format_html('{} available', record.withdrawable_balance)
    seller_wallet.short_description = 'Wallet (kobo)'

    def get_inlines(self, request, obj):
        if obj is None or not obj.is_seller:
            return []
        return super().get_inlines(request, obj)

    # Admin Actions
    def promote_to_seller(self, request, queryset):
        """Switch buyers to the seller role; their SellerProfile is created on save"""
        count = 0
        for user in queryset.exclude(role='seller'):
            user.role = 'seller'
            user.save()
            count += 1

        self.message_user(request, f'✓ {count} user(s) promoted to seller', messages.SUCCESS)
    promote_to_seller.short_description = 'Promote selected users to seller'


admin.site.register(CustomUser, CustomUserAdmin)
