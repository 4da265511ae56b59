from django.urls import path
from . import views

app_name = 'transfers'

urlpatterns = [
    # GET  /api/transfers/  - scan for pairs
    # POST /api/transfers/  - candidates for one transaction
    path('', views.transfers, name='transfers'),
    path('auto-link/', views.auto_link, name='auto-link'),
    path('link/', views.link, name='link'),
    path('pending/', views.pending, name='pending'),
]
