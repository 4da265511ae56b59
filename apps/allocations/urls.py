from django.urls import path
from . import views

app_name = 'allocations'

urlpatterns = [
    # Surplus
    path('income-reality/', views.income_reality, name='income-reality'),
    path('allocate-surplus/', views.allocate_surplus, name='allocate-surplus'),

    # Plan editing
    path('envelopes/<uuid:envelope_id>/', views.envelope_allocations, name='envelope-allocations'),

    # Pay events
    path('income-detection/', views.income_detection, name='income-detection'),
    path('approve/', views.approve_allocation, name='approve'),
    path('plans/<uuid:plan_id>/', views.allocation_plan_detail, name='plan-detail'),
]
