from django.contrib import admin
from django.contrib.auth import views as auth_views
from django.urls import path
from django.conf import settings
from django.views.static import serve
import re
from herd import views

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', views.index, name='index'),
    path('calendar/', views.calendar_dashboard, name='calendar_dashboard'),

    # Accounts & Farms
    path('accounts/login/', auth_views.LoginView.as_view(template_name='herd/login.html'), name='login'),
    path('accounts/logout/', views.logout_view, name='logout'),
    path('accounts/signup/', views.signup, name='signup'),
    path('organizations/new/', views.create_organization, name='create_organization'),
    path('organizations/<int:organization_id>/switch/', views.switch_organization, name='switch_organization'),

    # Sows
    path('sows/', views.sow_list, name='sow_list'),
    path('sows/new/', views.add_sow, name='add_sow'),
    path('sows/export/', views.export_sows_csv, name='export_sows'),
    path('sows/import/', views.import_sows, name='import_sows'),
    path('sows/import/template/<str:file_format>/', views.import_template, name='import_template'),
    path('sows/<int:sow_id>/', views.sow_detail, name='sow_detail'),
    path('sows/<int:sow_id>/edit/', views.edit_sow, name='edit_sow'),
    path('sows/<int:sow_id>/delete/', views.delete_sow, name='delete_sow'),
    path('sows/<int:sow_id>/status/', views.update_sow_status, name='update_sow_status'),
    path('sows/<int:sow_id>/card/', views.stall_card, name='stall_card'),
    path('sows/<int:sow_id>/document/', views.add_sow_document, name='add_sow_document'),
    path('sows/<int:sow_id>/unhouse/', views.remove_from_housing, name='remove_from_housing'),
    path('document/<int:doc_id>/delete/', views.delete_sow_document, name='delete_sow_document'),

    # Boars
    path('boars/', views.boar_list, name='boar_list'),
    path('boars/new/', views.add_boar, name='add_boar'),
    path('boars/export/', views.export_boars_csv, name='export_boars'),
    path('boars/<int:boar_id>/', views.boar_detail, name='boar_detail'),
    path('boars/<int:boar_id>/edit/', views.edit_boar, name='edit_boar'),
    path('boars/<int:boar_id>/delete/', views.delete_boar, name='delete_boar'),

    # Breeding
    path('breeding/', views.breeding_dashboard, name='breeding_dashboard'),
    path('breeding/bred-sows/', views.bred_sows, name='bred_sows'),
    path('breeding/record/', views.record_breeding, name='record_breeding'),
    path('breeding/export/', views.export_breeding_csv, name='export_breeding'),
    path('breeding/<int:attempt_id>/check/', views.pregnancy_check, name='pregnancy_check'),

    # Farrowings & Piglets
    path('farrowings/', views.farrowing_list, name='farrowing_list'),
    path('farrowings/<int:farrowing_id>/litter/', views.record_litter, name='record_litter'),
    path('farrowings/<int:farrowing_id>/piglets/', views.create_piglets, name='create_piglets'),
    path('farrowings/<int:farrowing_id>/wean/', views.wean_litter, name='wean_litter'),
    path('piglets/', views.piglet_list, name='piglet_list'),
    path('piglets/weaned/', views.piglet_list, {'status': 'weaned'}, name='weaned_piglets'),
    path('piglets/export/', views.export_piglets_csv, name='export_piglets'),
    path('piglets/<int:piglet_id>/status/', views.update_piglet_status, name='update_piglet_status'),

    # Matrix
    path('matrix/', views.matrix_batches, name='matrix_batches'),
    path('matrix/new/', views.record_matrix, name='record_matrix'),
    path('matrix/batches/<str:batch_name>/', views.matrix_batch_detail, name='matrix_batch_detail'),
    path('matrix/<int:treatment_id>/bred/', views.mark_matrix_bred, name='mark_matrix_bred'),

    # Protocols & Tasks
    path('protocols/', views.protocol_list, name='protocol_list'),
    path('protocols/<int:protocol_id>/', views.protocol_detail, name='protocol_detail'),
    path('protocols/<int:protocol_id>/toggle/', views.toggle_protocol, name='toggle_protocol'),
    path('protocols/<int:protocol_id>/delete/', views.delete_protocol, name='delete_protocol'),
    path('protocol-task/<int:task_id>/delete/', views.delete_protocol_task, name='delete_protocol_task'),
    path('tasks/', views.task_list, name='task_list'),
    path('tasks/<int:task_id>/complete/', views.complete_task, name='complete_task'),
    path('tasks/<int:task_id>/reopen/', views.reopen_task, name='reopen_task'),

    # Housing
    path('housing/', views.housing_list, name='housing_list'),
    path('housing/assign/', views.assign_housing, name='assign_housing'),
    path('housing/<int:unit_id>/delete/', views.delete_housing_unit, name='delete_housing_unit'),

    # Health
    path('health/', views.health_list, name='health_list'),
    path('health/vaccinate/', views.bulk_vaccinate, name='bulk_vaccinate'),
    path('health/<int:record_id>/delete/', views.delete_health_record, name='delete_health_record'),

    # Finances
    path('finances/', views.finance_dashboard, name='finance_dashboard'),
    path('finances/export/', views.export_expenses_csv, name='export_expenses'),
    path('expense/<int:expense_id>/delete/', views.delete_expense, name='delete_expense'),
    path('income/<int:income_id>/delete/', views.delete_income, name='delete_income'),
    path('finances/budgets/', views.budget_list, name='budget_list'),
    path('finances/budgets/<int:budget_id>/', views.budget_detail, name='budget_detail'),
    path('finances/budgets/<int:budget_id>/edit/', views.edit_budget, name='edit_budget'),
    path('finances/budgets/<int:budget_id>/delete/', views.delete_budget, name='delete_budget'),

    # Transfers
    path('transfers/', views.transfer_list, name='transfer_list'),
    path('transfers/new/<str:animal_type>/<int:animal_id>/', views.request_transfer, name='request_transfer'),
    path('transfers/<int:transfer_id>/accept/', views.accept_transfer, name='accept_transfer'),
    path('transfers/<int:transfer_id>/reject/', views.reject_transfer, name='reject_transfer'),
    path('transfers/<int:transfer_id>/cancel/', views.cancel_transfer, name='cancel_transfer'),

    # Settings & Notifications
    path('settings/', views.farm_settings, name='farm_settings'),
    path('settings/reset-ear-notch/', views.reset_ear_notch, name='reset_ear_notch'),
    path('settings/notifications/', views.notification_preferences, name='notification_preferences'),
    path('notifications/', views.notification_list, name='notification_list'),
    path('notifications/<int:notification_id>/read/', views.mark_notification_read, name='mark_notification_read'),
    path('notifications/read-all/', views.mark_all_notifications_read, name='mark_all_notifications_read'),

    # API Endpoints
    path('api/notifications/', views.api_notifications, name='api_notifications'),
    path('api/tasks/<int:task_id>/', views.api_update_task, name='api_update_task'),
]

# Always serve media files
urlpatterns += [
    path(re.sub(r'^/', '', settings.MEDIA_URL) + '<path:path>', serve, {'document_root': settings.MEDIA_ROOT}),
]
