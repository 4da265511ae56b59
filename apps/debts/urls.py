from django.urls import path
from . import views

app_name = 'debts'

urlpatterns = [
    path('payoff/', views.payoff, name='payoff'),
]
