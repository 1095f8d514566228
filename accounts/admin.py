from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User


class GalleryUserAdmin(UserAdmin):
    model = User
    list_display = ['username', 'email', 'role', 'is_staff']
    list_filter = UserAdmin.list_filter + ('role',)

    fieldsets = UserAdmin.fieldsets + (
        ('Gallery Role', {'fields': ('role',)}),
    )


admin.site.register(User, GalleryUserAdmin)
