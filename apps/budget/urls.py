from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'budget'

router = DefaultRouter()
router.register(r'accounts', views.BankAccountViewSet, basename='account')
router.register(r'income-sources', views.IncomeSourceViewSet, basename='income-source')
router.register(r'envelopes', views.EnvelopeViewSet, basename='envelope')
router.register(r'transactions', views.TransactionViewSet, basename='transaction')

urlpatterns = [
    # GET/POST          /api/budget/accounts/
    # GET/PATCH/DELETE  /api/budget/accounts/{id}/
    # ... same for income-sources, envelopes, transactions
    path('', include(router.urls)),
]
