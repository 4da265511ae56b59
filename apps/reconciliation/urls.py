from django.urls import path
from . import views

app_name = 'reconciliation'

urlpatterns = [
    path('', views.reconciliation_report, name='report'),
]
