from django.contrib import admin

from .models import Client, Invoice, Project, Workday


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ('company_name', 'contact_person', 'billing_email', 'created_at')
    search_fields = ('company_name', 'contact_person', 'billing_email')


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('name', 'client', 'billing_mode', 'rate', 'status', 'created_at')
    list_filter = ('status', 'billing_mode')
    search_fields = ('name', 'client__company_name')


@admin.register(Workday)
class WorkdayAdmin(admin.ModelAdmin):
    list_display = ('project', 'date', 'created_at')
    list_filter = ('date',)
    search_fields = ('project__name',)


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'client', 'project', 'amount', 'status', 'invoice_date', 'due_date')
    list_filter = ('status',)
    search_fields = ('invoice_number', 'client__company_name', 'project__name')
    readonly_fields = ('invoice_number', 'amount', 'workday_ids', 'created_at')
